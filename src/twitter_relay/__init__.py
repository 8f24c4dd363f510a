"""Relay Twitter/X posts and whole threads into Telegram chats."""

__version__ = "0.1.0"
