"""CLI interface for twitter-relay.

Commands:
    setup    - Configure Telegram and Twitter credentials
    run      - Start the bot (long polling)
    preview  - Print the messages a post or thread would become
    status   - Show configuration status
"""

import sys
from pathlib import Path

import click
import httpx

from .config import (
    CONFIG_FILE,
    AnalyticsConfig,
    AppConfig,
    TelegramConfig,
    TwitterConfig,
    config_exists,
    load_config,
    save_config,
)
from .logging_config import setup_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Twitter to Telegram relay: turn post links into chat messages."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _load_or_exit(config_path: Path) -> AppConfig:
    try:
        return load_config(config_path)
    except FileNotFoundError:
        click.echo(
            "Error: No config found. Run 'twitter-relay setup' first.", err=True
        )
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def setup(ctx):
    """Configure bot and API credentials."""
    config_path = ctx.obj["config_path"]

    click.echo("Twitter Relay Setup")
    click.echo("=" * 40)
    click.echo()
    click.echo("You need a Telegram bot token (from @BotFather) and the")
    click.echo("client id/secret of a Twitter developer app.")
    click.echo()

    bot_token = click.prompt("bot_token", hide_input=True)
    client_id = click.prompt("twitter client_id")
    client_secret = click.prompt("twitter client_secret", hide_input=True)

    click.echo()
    click.echo("(Optional) Umami analytics. Press Enter to skip.")
    umami_url = click.prompt("umami url", default="", show_default=False)
    umami_id = ""
    if umami_url:
        umami_id = click.prompt("umami website id", default="", show_default=False)

    config = AppConfig(
        telegram=TelegramConfig(bot_token=bot_token),
        twitter=TwitterConfig(client_id=client_id, client_secret=client_secret),
        analytics=AnalyticsConfig(url=umami_url or None, website_id=umami_id or None),
    )

    save_config(config, config_path)
    click.echo(f"\nConfig saved to {config_path}")
    click.echo("Run 'twitter-relay run' to start the bot.")


@main.command()
@click.option("--workers", type=int, default=None, help="Concurrent update handlers")
@click.pass_context
def run(ctx, workers):
    """Start the bot and process updates until interrupted."""
    config = _load_or_exit(ctx.obj["config_path"])

    # Lazy imports so --help stays fast
    from .analytics import Analytics
    from .bot import run_polling
    from .client import TwitterClient, fetch_bearer_token
    from .errors import RelayError
    from .processors import Relay
    from .telegram import TelegramClient

    try:
        token = fetch_bearer_token(
            config.twitter.client_id, config.twitter.client_secret
        )
    except (RelayError, httpx.HTTPError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    analytics = Analytics(config.analytics.url, config.analytics.website_id)
    try:
        with TwitterClient(token) as twitter, TelegramClient(
            config.telegram.bot_token
        ) as telegram:
            try:
                me = telegram.get_me()
            except (RelayError, httpx.HTTPError) as e:
                click.echo(f"Error: cannot reach Telegram: {e}", err=True)
                sys.exit(1)

            click.echo(f"Running as @{me.get('username', '?')}. Ctrl+C to stop.")
            relay = Relay(twitter, telegram, analytics, config.budgets)
            try:
                run_polling(
                    relay,
                    poll_timeout=config.telegram.poll_timeout,
                    workers=workers or config.telegram.workers,
                )
            except KeyboardInterrupt:
                click.echo("Stopping.")
    finally:
        analytics.close()


@main.command()
@click.argument("link")
@click.option("--unroll", is_flag=True, help="Rebuild the whole thread")
@click.option(
    "--trigger",
    type=click.Choice(["none", "text", "caption"]),
    default="none",
    help="Kind of message the first chunk would edit",
)
@click.pass_context
def preview(ctx, link, unroll, trigger):
    """Show how a post link would be split into messages.

    LINK is a twitter.com or x.com status URL.
    """
    config = _load_or_exit(ctx.obj["config_path"])

    from .chunker import chunk_entities
    from .client import TwitterClient, fetch_bearer_token
    from .errors import PostLinkError, RelayError
    from .models import ThreadEntity
    from .parser import post_id_from_link
    from .thread import post_to_reply, unroll_thread

    try:
        post_id = post_id_from_link(link)
    except PostLinkError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        token = fetch_bearer_token(
            config.twitter.client_id, config.twitter.client_secret
        )
        with TwitterClient(token) as client:
            if unroll:
                thread = unroll_thread(client, post_id)
                title, entities = thread.author_name, thread.entities
            else:
                reply = post_to_reply(client.fetch_post(post_id))
                title = reply.author_name
                entities = [ThreadEntity(text=reply.text, media=reply.media)]
    except (RelayError, httpx.HTTPError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    budgets = config.budgets
    chunks = chunk_entities(
        entities,
        first_budget=budgets.first(None if trigger == "none" else trigger),
        rest_budget=budgets.text,
        group_budget=budgets.text,
        title=title,
    )

    click.echo(f"{title or 'Unknown author'}: {len(entities)} posts, {len(chunks)} messages")
    for i, chunk in enumerate(chunks, 1):
        kinds = ", ".join(type(m).__name__.lower() for m in chunk.media) or "text"
        click.echo()
        click.echo(
            f"--- message {i}/{len(chunks)} "
            f"({len(chunk.entities)} posts, {len(chunk.text)} chars, {kinds}) ---"
        )
        if len(chunk.media) == 1 and len(chunk.text) > budgets.caption:
            click.echo(f"warning: caption exceeds {budgets.caption} chars")
        click.echo(chunk.text)
        for media in chunk.media:
            click.echo(f"  [{type(media).__name__.lower()}] {media.url}")


@main.command()
@click.pass_context
def status(ctx):
    """Show current configuration status."""
    config_path = ctx.obj["config_path"]
    has_config = config_exists(config_path)

    click.echo("Twitter Relay Status")
    click.echo("=" * 40)
    click.echo(f"Config: {'Found' if has_config else 'Not configured'} ({config_path})")

    try:
        config = load_config(config_path)
    except FileNotFoundError:
        click.echo("\nRun 'twitter-relay setup' to get started.")
        return
    except ValueError as e:
        click.echo(f"Config error: {e}")
        return

    analytics = "enabled" if config.analytics.url and config.analytics.website_id else "disabled"
    click.echo(f"Analytics: {analytics}")
    click.echo(f"Workers: {config.telegram.workers}")
    b = config.budgets
    click.echo(
        f"Budgets: text {b.text}, caption {b.caption}, "
        f"first text {b.first_text}, first caption {b.first_caption}"
    )
