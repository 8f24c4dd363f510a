"""Deliver replies and thread chunks to a Telegram chat."""

import html
import logging
from dataclasses import dataclass

from .models import Image, OutputChunk, Reply, ResolvedMedia, Video
from .telegram import TelegramClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditTarget:
    """An already-sent message that the first chunk should replace.

    kind is "text" for a text message, "caption" for a photo/video caption.
    media is what the message already displays (a group above a text
    message, or the item under a caption).
    """

    chat_id: int
    message_id: int
    kind: str
    media: tuple[ResolvedMedia, ...] = ()


def message_kind(message: dict) -> str:
    """Whether a Telegram message shows its text as text or as a caption."""
    if "text" in message:
        return "text"
    if any(key in message for key in ("caption", "photo", "video", "animation")):
        return "caption"
    return "text"


def render(text: str, title: str | None = None) -> str:
    """HTML-escape text and prepend the author's name in bold."""
    body = html.escape(text, quote=False)
    if not title:
        return body
    heading = f"<b>{html.escape(title, quote=False)}</b>"
    return f"{heading}\n\n{body}" if body else heading


class Dispatcher:
    def __init__(self, telegram: TelegramClient):
        self.telegram = telegram

    def send_reply(
        self, chat_id: int, reply: Reply, reply_markup: dict | None = None
    ) -> None:
        """Send a single post, choosing the message type from its media."""
        text = render(reply.text, reply.author_name)
        self._send(chat_id, text, reply.media, reply_markup)
        logger.info("Sent reply with %d media to chat %s", len(reply.media), chat_id)

    def send_chunks(
        self,
        chat_id: int,
        chunks: list[OutputChunk],
        title: str | None = None,
        edit: EditTarget | None = None,
    ) -> None:
        """Replay chunks in order; the first one replaces edit when it fits.

        A failing call aborts the remaining chunks, so a thread may arrive
        partially.
        """
        for index, chunk in enumerate(chunks):
            text = render(chunk.text, title if index == 0 else None)
            if index == 0 and edit is not None and self._edit(edit, chunk, text):
                continue
            self._send(chat_id, text, chunk.media)
        logger.info("Delivered %d chunks to chat %s", len(chunks), chat_id)

    def _send(
        self,
        chat_id: int,
        text: str,
        media: tuple[ResolvedMedia, ...],
        reply_markup: dict | None = None,
    ) -> None:
        match media:
            case ():
                self.telegram.send_text(chat_id, text, reply_markup=reply_markup)
            case (Image() as image,):
                self.telegram.send_photo(
                    chat_id, image.url, caption=text, reply_markup=reply_markup
                )
            case (Video() as video,):
                self.telegram.send_video(
                    chat_id,
                    video.url,
                    caption=text,
                    width=video.width,
                    height=video.height,
                    reply_markup=reply_markup,
                )
            case _:
                # Media groups cannot carry a keyboard, so the text follows
                self.telegram.send_media_group(chat_id, list(media))
                self.telegram.send_text(chat_id, text, reply_markup=reply_markup)

    def _edit(self, target: EditTarget, chunk: OutputChunk, text: str) -> bool:
        """Put the first chunk into target if the message shape allows it.

        Media the trigger already shows is not sent again. Other media is
        sent fresh: a media group goes out before the text edit, a single
        item cannot be swapped into an existing message.
        """
        shown = chunk.media == target.media
        if target.kind == "caption":
            if len(chunk.media) == 1 and shown:
                self.telegram.edit_caption(target.chat_id, target.message_id, text)
                return True
        elif not chunk.media or len(chunk.media) > 1:
            if chunk.media and not shown:
                self.telegram.send_media_group(target.chat_id, list(chunk.media))
            self.telegram.edit_text(target.chat_id, target.message_id, text)
            return True
        logger.debug(
            "First chunk (%d media) does not fit the %s trigger, sending anew",
            len(chunk.media),
            target.kind,
        )
        return False
