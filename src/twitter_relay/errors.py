"""Exceptions raised while relaying posts."""


class RelayError(Exception):
    """Base class for every error raised by twitter_relay."""


class TwitterAPIError(RelayError, RuntimeError):
    """The Twitter API answered with an error status or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TelegramAPIError(RelayError, RuntimeError):
    """The Telegram Bot API rejected a request (``"ok": false``)."""

    def __init__(self, method: str, description: str, error_code: int | None = None):
        super().__init__(f"{method} failed: {description}")
        self.method = method
        self.description = description
        self.error_code = error_code


class PostLinkError(RelayError, ValueError):
    """Text does not contain a recognized post link."""


class CallbackDataError(RelayError, ValueError):
    """Callback query data is missing or malformed."""


class MissingAuthorError(RelayError):
    """A post came back without its author."""

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} has no author")
        self.post_id = post_id


class MissingConversationError(RelayError):
    """Thread data was expected but the post has no conversation id."""

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} has no conversation id")
        self.post_id = post_id


class InvalidMediaUrlError(RelayError, ValueError):
    """A media descriptor carries a URL that is not an absolute http(s) URL."""

    def __init__(self, url: str):
        super().__init__(f"Malformed media URL: {url!r}")
        self.url = url
