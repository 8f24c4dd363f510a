"""Configuration loading and saving.

Config file location: ~/.config/twitter-relay/config.toml

Schema:
    [telegram]
    bot_token = "..."
    poll_timeout = 30
    workers = 4

    [twitter]
    client_id = "..."
    client_secret = "..."

    [analytics]  # optional
    url = "https://umami.example.com"
    website_id = "..."

    [budgets]  # optional, characters per message
    text = 4096
    caption = 1024
    first_text = 3072
    first_caption = 768

Environment variables take precedence over the file:
    TELEGRAM_BOT_TOKEN, TWITTER_CLIENT_ID, TWITTER_CLIENT_SECRET,
    UMAMI_URL, UMAMI_ID
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

from .chunker import ChunkBudgets

CONFIG_DIR = Path.home() / ".config" / "twitter-relay"
CONFIG_FILE = CONFIG_DIR / "config.toml"

REQUIRED_ENV = ("TELEGRAM_BOT_TOKEN", "TWITTER_CLIENT_ID", "TWITTER_CLIENT_SECRET")


@dataclass
class TelegramConfig:
    bot_token: str
    poll_timeout: int = 30
    workers: int = 4


@dataclass
class TwitterConfig:
    client_id: str
    client_secret: str


@dataclass
class AnalyticsConfig:
    url: str | None = None
    website_id: str | None = None


@dataclass
class AppConfig:
    telegram: TelegramConfig
    twitter: TwitterConfig
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    budgets: ChunkBudgets = field(default_factory=ChunkBudgets)


def load_config(
    config_path: Path = CONFIG_FILE, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Load and validate config from the TOML file and the environment."""
    env = os.environ if environ is None else environ

    data: dict = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    elif not all(env.get(name) for name in REQUIRED_ENV):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    telegram_data = data.get("telegram", {})
    twitter_data = data.get("twitter", {})
    analytics_data = data.get("analytics", {})
    budgets_data = data.get("budgets", {})

    bot_token = env.get("TELEGRAM_BOT_TOKEN") or telegram_data.get("bot_token", "")
    client_id = env.get("TWITTER_CLIENT_ID") or twitter_data.get("client_id", "")
    client_secret = env.get("TWITTER_CLIENT_SECRET") or twitter_data.get(
        "client_secret", ""
    )

    if not bot_token:
        raise ValueError("Config missing required telegram.bot_token")
    if not client_id or not client_secret:
        raise ValueError(
            "Config missing required twitter.client_id and twitter.client_secret"
        )

    defaults = ChunkBudgets()
    return AppConfig(
        telegram=TelegramConfig(
            bot_token=bot_token,
            poll_timeout=int(telegram_data.get("poll_timeout", 30)),
            workers=int(telegram_data.get("workers", 4)),
        ),
        twitter=TwitterConfig(client_id=client_id, client_secret=client_secret),
        analytics=AnalyticsConfig(
            url=env.get("UMAMI_URL") or analytics_data.get("url"),
            website_id=env.get("UMAMI_ID") or analytics_data.get("website_id"),
        ),
        budgets=ChunkBudgets(
            text=int(budgets_data.get("text", defaults.text)),
            caption=int(budgets_data.get("caption", defaults.caption)),
            first_text=int(budgets_data.get("first_text", defaults.first_text)),
            first_caption=int(
                budgets_data.get("first_caption", defaults.first_caption)
            ),
        ),
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file with restricted permissions."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "telegram": {
            "bot_token": config.telegram.bot_token,
            "poll_timeout": config.telegram.poll_timeout,
            "workers": config.telegram.workers,
        },
        "twitter": {
            "client_id": config.twitter.client_id,
            "client_secret": config.twitter.client_secret,
        },
        "budgets": {
            "text": config.budgets.text,
            "caption": config.budgets.caption,
            "first_text": config.budgets.first_text,
            "first_caption": config.budgets.first_caption,
        },
    }

    if config.analytics.url and config.analytics.website_id:
        data["analytics"] = {
            "url": config.analytics.url,
            "website_id": config.analytics.website_id,
        }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    # Restrict permissions: file contains bot and API secrets
    os.chmod(config_path, 0o600)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
