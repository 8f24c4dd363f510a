"""Configure logging for the relay."""

import logging
import re
import sys

# Telegram Bot API URLs carry the bot token in their path
BOT_TOKEN_RE = re.compile(r"/bot\d+:[\w-]+")


class BotTokenFilter(logging.Filter):
    """Mask bot tokens in request URLs and in HTTP error messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "/bot" in message:
            record.msg = BOT_TOKEN_RE.sub("/bot***", message)
            record.args = ()
        return True


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(BotTokenFilter())

    package = logging.getLogger("twitter_relay")
    package.setLevel(level)
    if not package.handlers:
        package.addHandler(handler)

    # Request logs only in debug mode, through the same masking handler
    http = logging.getLogger("httpx")
    http.setLevel(logging.DEBUG if debug else logging.WARNING)
    if debug and not http.handlers:
        http.addHandler(handler)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
