"""Pick one displayable media item per attachment."""

import logging

import httpx

from .errors import InvalidMediaUrlError
from .models import Image, MediaAttachment, ResolvedMedia, Video

logger = logging.getLogger(__name__)

MP4 = "video/mp4"


def parse_url(value: str) -> str:
    """Return value if it is an absolute http(s) URL, else raise."""
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidMediaUrlError(str(value)) from e
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidMediaUrlError(value)
    return value


def resolve_media(
    attachment: MediaAttachment, rank_variants: bool = True
) -> ResolvedMedia | None:
    """Resolve an attachment to a Video, an Image, or None when unusable.

    With rank_variants the MP4 variant with the highest bit rate is chosen
    (search API, which lists every rendition). Without it the first MP4
    variant with a valid URL wins (native single-post API).
    """
    try:
        thumb_url = parse_url(attachment.preview_url)
    except InvalidMediaUrlError as e:
        logger.warning("Skipping media %s: %s", attachment.id, e)
        return None

    # A video without a usable MP4 falls back to its thumbnail
    video_url = None
    if attachment.kind == "video":
        video_url = _video_url(attachment, rank_variants)
    if video_url:
        return Video(
            id=attachment.id,
            url=video_url,
            thumb_url=thumb_url,
            mime_type=MP4,
            width=attachment.width,
            height=attachment.height,
        )

    return Image(
        id=attachment.id,
        url=thumb_url,
        width=attachment.width,
        height=attachment.height,
    )


def resolve_all(
    attachments, rank_variants: bool = True
) -> tuple[ResolvedMedia, ...]:
    resolved = (resolve_media(a, rank_variants) for a in attachments)
    return tuple(m for m in resolved if m is not None)


def _video_url(attachment: MediaAttachment, rank_variants: bool) -> str | None:
    mp4_variants = [v for v in attachment.variants if v.content_type == MP4]
    if not mp4_variants:
        return None

    if rank_variants:
        best = sorted(mp4_variants, key=lambda v: v.bit_rate or 0)[-1]
        try:
            return parse_url(best.url)
        except InvalidMediaUrlError:
            logger.debug("Best variant of %s has a bad URL", attachment.id)
            return None

    for variant in mp4_variants:
        try:
            return parse_url(variant.url)
        except InvalidMediaUrlError:
            continue
    return None
