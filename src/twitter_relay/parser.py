"""Parse Twitter API responses and user text.

Two response shapes are handled:

    v1.1 statuses/show (tweet_mode=extended)
        user -> name / screen_name / profile_image_url_https
        extended_entities -> media -> sizes.large, video_info.variants

    v2 tweets/search/recent
        data[] -> attachments.media_keys, referenced_tweets
        includes -> media[] keyed by media_key
        meta -> next_token

The two APIs disagree on media layout, so each gets its own media parser; both
produce MediaAttachment values for the resolver.
"""

import html
import logging
import re

from .errors import PostLinkError, TwitterAPIError
from .models import (
    Author,
    ConversationPage,
    ConversationPost,
    MediaAttachment,
    MediaVariant,
    Post,
)

logger = logging.getLogger(__name__)

POST_LINK_RE = re.compile(r"(?:twitter|x)\.com/\w+/status/(\d+)")
DEEP_LINK_RE = re.compile(r"/start (\d+)")

# Twitter appends a t.co link to the post's own media/quote at the very end
SHORT_LINK_RE = re.compile(r"\shttps://t\.co/[\w./]+\Z")

VIDEO_TYPES = {"video", "animated_gif"}


def normalize_text(raw: str | None) -> str:
    """Turn a raw post body into displayable text.

    HTML entities are decoded and a trailing t.co short link is dropped.
    Undecodable input yields an empty string.
    """
    try:
        text = html.unescape(raw)
    except (TypeError, AttributeError):
        logger.debug("Could not decode post text %r", raw)
        text = ""
    return trim_short_link(text)


def trim_short_link(text: str) -> str:
    return SHORT_LINK_RE.sub("", text)


def post_id_from_link(text: str) -> int:
    """Extract the status id from the first twitter.com/x.com link in text."""
    return _first_id(POST_LINK_RE, text)


def post_id_from_deep_link(text: str) -> int:
    """Extract the status id from a ``/start <id>`` deep link."""
    return _first_id(DEEP_LINK_RE, text)


def _first_id(pattern: re.Pattern, text: str) -> int:
    for match in pattern.finditer(text or ""):
        value = int(match.group(1))
        if value < 2**64:
            return value
    raise PostLinkError(f"Not a recognized post link: {text!r}")


def parse_status(data: dict) -> Post:
    """Parse a v1.1 status object into a Post."""
    try:
        return _parse_status(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TwitterAPIError(f"Unexpected status payload: {e}") from e


def _parse_status(data: dict) -> Post:
    post_id = int(data.get("id_str") or data["id"])

    author = None
    user = data.get("user")
    if user:
        author = Author(
            name=html.unescape(user.get("name", "")),
            screen_name=user["screen_name"],
            avatar_url=user.get("profile_image_url_https") or None,
        )

    media_entities = (data.get("extended_entities") or {}).get("media", [])
    media = tuple(_parse_native_media(m) for m in media_entities)

    in_reply_to = data.get("in_reply_to_status_id_str") or data.get(
        "in_reply_to_status_id"
    )

    return Post(
        id=post_id,
        text=data.get("full_text", data.get("text", "")),
        author=author,
        media=media,
        in_reply_to_id=int(in_reply_to) if in_reply_to else None,
    )


def _parse_native_media(entity: dict) -> MediaAttachment:
    large = entity.get("sizes", {}).get("large", {})
    variants = tuple(
        MediaVariant(
            url=v.get("url", ""),
            content_type=v.get("content_type", ""),
            bit_rate=v.get("bitrate"),
        )
        for v in (entity.get("video_info") or {}).get("variants", [])
    )
    return MediaAttachment(
        id=str(entity.get("id_str") or entity["id"]),
        kind="video" if entity.get("type") in VIDEO_TYPES else "image",
        preview_url=entity.get("media_url_https", ""),
        width=int(large.get("w", 0)),
        height=int(large.get("h", 0)),
        variants=variants,
    )


def parse_search_page(data: dict) -> ConversationPage:
    """Parse one v2 recent-search response into a ConversationPage."""
    try:
        return _parse_search_page(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TwitterAPIError(f"Unexpected search payload: {e}") from e


def _parse_search_page(data: dict) -> ConversationPage:
    # "data" is omitted entirely when the search has no results
    posts = [_parse_conversation_post(item) for item in data.get("data", [])]

    media = {}
    for item in (data.get("includes") or {}).get("media", []):
        attachment = _parse_include_media(item)
        media[attachment.id] = attachment

    return ConversationPage(
        posts=posts,
        media=media,
        next_cursor=(data.get("meta") or {}).get("next_token"),
    )


def _parse_conversation_post(item: dict) -> ConversationPost:
    in_reply_to = None
    for ref in item.get("referenced_tweets", []):
        if ref.get("type") == "replied_to":
            in_reply_to = int(ref["id"])
            break

    return ConversationPost(
        id=int(item["id"]),
        text=item.get("text", ""),
        media_keys=tuple((item.get("attachments") or {}).get("media_keys", [])),
        in_reply_to_id=in_reply_to,
    )


def _parse_include_media(item: dict) -> MediaAttachment:
    # Photos carry "url"; videos and GIFs only a "preview_image_url"
    preview = item.get("url") or item.get("preview_image_url") or ""
    variants = tuple(
        MediaVariant(
            url=v.get("url", ""),
            content_type=v.get("content_type", ""),
            bit_rate=v.get("bit_rate"),
        )
        for v in item.get("variants", [])
    )
    return MediaAttachment(
        id=item["media_key"],
        kind="video" if item.get("type") in VIDEO_TYPES else "image",
        preview_url=preview,
        width=int(item.get("width", 0)),
        height=int(item.get("height", 0)),
        variants=variants,
    )
