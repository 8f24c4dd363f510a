"""Minimal Telegram Bot API client.

Only the calls the relay needs are wrapped. Every call returns the ``result``
field of the API response or raises TelegramAPIError when the API answers
``"ok": false``. Messages are sent with HTML parse mode.
"""

import logging

import httpx

from .errors import TelegramAPIError
from .models import Image, ResolvedMedia, Video

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org"
PARSE_MODE = "HTML"
NO_PREVIEW = {"is_disabled": True}


def input_media(item: ResolvedMedia) -> dict:
    """InputMedia object for one item of a media group."""
    match item:
        case Video():
            return {
                "type": "video",
                "media": item.url,
                "width": item.width,
                "height": item.height,
                "supports_streaming": True,
            }
        case Image():
            return {"type": "photo", "media": item.url}
    raise TypeError(f"Unsupported media item: {item!r}")


class TelegramClient:
    """Client for the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 30.0):
        self._client = httpx.Client(
            base_url=f"{API_URL}/bot{bot_token}/",
            timeout=timeout,
        )

    def get_me(self) -> dict:
        return self._call("getMe", {})

    def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict]:
        """Long-poll for updates. Blocks up to timeout seconds."""
        payload: dict = {
            "timeout": timeout,
            "allowed_updates": ["message", "inline_query", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        # The HTTP request must outlive the long poll
        return self._call("getUpdates", payload, timeout=timeout + 10)

    def send_text(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> int:
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": PARSE_MODE,
            "link_preview_options": NO_PREVIEW,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._call("sendMessage", payload)["message_id"]

    def edit_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> int:
        payload = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": PARSE_MODE,
            "link_preview_options": NO_PREVIEW,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        self._call("editMessageText", payload)
        return message_id

    def edit_caption(
        self,
        chat_id: int,
        message_id: int,
        caption: str,
        reply_markup: dict | None = None,
    ) -> int:
        payload = {
            "chat_id": chat_id,
            "message_id": message_id,
            "caption": caption,
            "parse_mode": PARSE_MODE,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        self._call("editMessageCaption", payload)
        return message_id

    def send_photo(
        self,
        chat_id: int,
        url: str,
        caption: str | None = None,
        reply_markup: dict | None = None,
    ) -> int:
        payload = {"chat_id": chat_id, "photo": url}
        if caption:
            payload["caption"] = caption
            payload["parse_mode"] = PARSE_MODE
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._call("sendPhoto", payload)["message_id"]

    def send_video(
        self,
        chat_id: int,
        url: str,
        caption: str | None = None,
        width: int | None = None,
        height: int | None = None,
        reply_markup: dict | None = None,
    ) -> int:
        payload = {"chat_id": chat_id, "video": url, "supports_streaming": True}
        if caption:
            payload["caption"] = caption
            payload["parse_mode"] = PARSE_MODE
        if width and height:
            payload["width"] = width
            payload["height"] = height
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._call("sendVideo", payload)["message_id"]

    def send_media_group(
        self, chat_id: int, media: list[ResolvedMedia]
    ) -> list[int]:
        payload = {
            "chat_id": chat_id,
            "media": [input_media(item) for item in media],
        }
        messages = self._call("sendMediaGroup", payload)
        return [m["message_id"] for m in messages]

    def answer_inline_query(
        self, inline_query_id: str, results: list[dict], cache_time: int = 300
    ) -> None:
        self._call(
            "answerInlineQuery",
            {
                "inline_query_id": inline_query_id,
                "results": results,
                "cache_time": cache_time,
            },
        )

    def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        payload = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        self._call("answerCallbackQuery", payload)

    def _call(self, method: str, payload: dict, timeout: float | None = None):
        logger.debug("Telegram %s", method)
        kwargs = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = self._client.post(method, **kwargs)

        try:
            data = response.json()
        except ValueError:
            response.raise_for_status()
            raise TelegramAPIError(method, "response is not JSON")

        if not data.get("ok"):
            raise TelegramAPIError(
                method,
                data.get("description", "Unknown error"),
                data.get("error_code"),
            )
        return data.get("result")

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
