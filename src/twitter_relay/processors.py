"""Handle the three kinds of Telegram updates the bot answers.

Every processor offers the same two calls, ``process(relay)`` and
``track_hit(relay)``. They share no state; everything long-lived sits in the
immutable Relay passed in.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Protocol

import httpx

from .analytics import Analytics
from .chunker import ChunkBudgets, chunk_entities
from .client import TwitterClient
from .dispatch import Dispatcher, EditTarget, message_kind, render
from .errors import CallbackDataError, PostLinkError, RelayError
from .models import Image, Post, Reply, Video
from .parser import post_id_from_deep_link, post_id_from_link
from .telegram import NO_PREVIEW, PARSE_MODE, TelegramClient
from .thread import is_part_of_thread, post_to_reply, unroll_thread

logger = logging.getLogger(__name__)

UNROLL_PREFIX = "unroll_"
UNROLL_DATA_RE = re.compile(rf"^{UNROLL_PREFIX}(\d+)$")
START_UNROLL_RE = re.compile(rf"^/start {UNROLL_PREFIX}(\d+)")

INFO_TITLE = "What can this bot do?"
INFO_TEXT = (
    "This bot converts tweet links to regular Telegram messages. It downloads "
    "videos and images from tweets and can unroll whole threads. Send a link "
    "here or mention the bot inline in any chat."
)


@dataclass(frozen=True)
class Relay:
    """Long-lived collaborators shared by every update."""

    twitter: TwitterClient
    telegram: TelegramClient
    analytics: Analytics
    budgets: ChunkBudgets = field(default_factory=ChunkBudgets)

    def fetch_reply(self, post_id: int) -> tuple[Post, Reply]:
        post = self.twitter.fetch_post(post_id)
        return post, post_to_reply(post)

    def in_thread(self, post: Post) -> bool:
        """Thread check that degrades to False when the lookup fails."""
        try:
            return is_part_of_thread(self.twitter, post)
        except (RelayError, httpx.HTTPError) as e:
            logger.warning("Thread lookup for %d failed: %s", post.id, e)
            return False

    def unroll(
        self, chat_id: int, post_id: int, edit: EditTarget | None = None
    ) -> None:
        """Rebuild the thread of post_id and deliver it to chat_id."""
        self.analytics.track_hit("unroll")
        thread = unroll_thread(self.twitter, post_id)
        if edit is not None:
            # The trigger is the anchor's own reply and shows its media
            edit = replace(edit, media=thread.anchor_media)
        chunks = chunk_entities(
            thread.entities,
            first_budget=self.budgets.first(edit.kind if edit else None),
            rest_budget=self.budgets.text,
            group_budget=self.budgets.text,
            title=thread.author_name,
        )
        Dispatcher(self.telegram).send_chunks(
            chat_id, chunks, title=thread.author_name, edit=edit
        )


class UpdateProcessor(Protocol):
    def process(self, relay: Relay) -> None: ...

    def track_hit(self, relay: Relay) -> None: ...


def unroll_keyboard(post_id: int) -> dict:
    return {
        "inline_keyboard": [
            [
                {
                    "text": "Unroll Thread",
                    "callback_data": f"{UNROLL_PREFIX}{post_id}",
                }
            ]
        ]
    }


@dataclass(frozen=True)
class MessageProcessor:
    """Private or group message containing a link or a /start command."""

    message: dict

    @property
    def chat_id(self) -> int:
        return self.message["chat"]["id"]

    @property
    def text(self) -> str:
        return self.message.get("text", "")

    def track_hit(self, relay: Relay) -> None:
        relay.analytics.track_hit("message")

    def process(self, relay: Relay) -> None:
        self.track_hit(relay)

        if self.text.startswith("/start"):
            match = START_UNROLL_RE.match(self.text)
            if match:
                relay.unroll(self.chat_id, int(match.group(1)))
                return
            try:
                post_id = post_id_from_deep_link(self.text)
            except PostLinkError:
                self.send_info(relay)
                return
        else:
            try:
                post_id = post_id_from_link(self.text)
            except PostLinkError:
                logger.debug("Ignoring message without a post link")
                return

        post, reply = relay.fetch_reply(post_id)
        self.answer(relay, post, reply, relay.in_thread(post))

    def answer(self, relay: Relay, post: Post, reply: Reply, in_thread: bool) -> None:
        markup = unroll_keyboard(post.id) if in_thread else None
        Dispatcher(relay.telegram).send_reply(self.chat_id, reply, reply_markup=markup)

    def send_info(self, relay: Relay) -> None:
        relay.telegram.send_text(self.chat_id, render(INFO_TEXT, INFO_TITLE))


@dataclass(frozen=True)
class InlineQueryProcessor:
    """``@bot <link>`` typed in any chat."""

    query: dict

    def track_hit(self, relay: Relay) -> None:
        relay.analytics.track_hit("inline")

    def process(self, relay: Relay) -> None:
        self.track_hit(relay)
        try:
            post_id = post_id_from_link(self.query.get("query", ""))
        except PostLinkError:
            relay.telegram.answer_inline_query(self.query["id"], [])
            return

        post, reply = relay.fetch_reply(post_id)
        self.answer(relay, post, reply)

    def answer(self, relay: Relay, post: Post, reply: Reply) -> None:
        relay.telegram.answer_inline_query(
            self.query["id"], [inline_result(str(post.id), reply)]
        )


def inline_result(result_id: str, reply: Reply) -> dict:
    """InlineQueryResult for a reply: photo, video or article."""
    text = render(reply.text, reply.author_name)
    if reply.author_name:
        title, description = reply.author_name, reply.text
    else:
        title, description = reply.text or "Post", None

    match reply.media:
        case (Image() as image,):
            result = {
                "type": "photo",
                "photo_url": image.url,
                "thumbnail_url": image.url,
                "photo_width": image.width,
                "photo_height": image.height,
                "caption": text,
                "parse_mode": PARSE_MODE,
            }
        case (Video() as video,):
            result = {
                "type": "video",
                "video_url": video.url,
                "mime_type": video.mime_type,
                "thumbnail_url": video.thumb_url,
                "video_width": video.width,
                "video_height": video.height,
                "caption": text,
                "parse_mode": PARSE_MODE,
            }
        case _:
            result = {
                "type": "article",
                "input_message_content": {
                    "message_text": text,
                    "parse_mode": PARSE_MODE,
                    "link_preview_options": NO_PREVIEW,
                },
            }
            if reply.avatar_url:
                result["thumbnail_url"] = reply.avatar_url

    result["id"] = result_id
    result["title"] = title
    if description:
        result["description"] = description
    return result


@dataclass(frozen=True)
class CallbackQueryProcessor:
    """Press on the "Unroll Thread" button under a relayed post."""

    query: dict

    def track_hit(self, relay: Relay) -> None:
        relay.analytics.track_hit("callback")

    def post_id(self) -> int:
        match = UNROLL_DATA_RE.match(self.query.get("data") or "")
        if not match:
            raise CallbackDataError(
                f"Unexpected callback data: {self.query.get('data')!r}"
            )
        return int(match.group(1))

    def process(self, relay: Relay) -> None:
        self.track_hit(relay)
        # Every callback query is answered, malformed ones included
        relay.telegram.answer_callback_query(self.query["id"])
        post_id = self.post_id()

        message = self.query.get("message")
        if not message:
            # Buttons on inline-mode messages have no chat to send into
            logger.warning("Callback %s has no message to unroll into", self.query["id"])
            return

        chat_id = message["chat"]["id"]
        edit = EditTarget(chat_id, message["message_id"], message_kind(message))
        relay.unroll(chat_id, post_id, edit=edit)


def processor_for_update(update: dict) -> UpdateProcessor | None:
    """Pick the processor for a raw Telegram update, if the bot handles it."""
    if "message" in update and "text" in update["message"]:
        return MessageProcessor(update["message"])
    if "inline_query" in update:
        return InlineQueryProcessor(update["inline_query"])
    if "callback_query" in update:
        return CallbackQueryProcessor(update["callback_query"])
    return None
