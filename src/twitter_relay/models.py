"""Data models for fetched posts, assembled threads and outbound chunks."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Author:
    name: str  # display name
    screen_name: str  # handle without @
    avatar_url: str | None = None


@dataclass(frozen=True)
class MediaVariant:
    url: str
    content_type: str  # "video/mp4", "application/x-mpegURL", ...
    bit_rate: int | None = None


@dataclass(frozen=True)
class MediaAttachment:
    id: str  # id_str (native API) or media_key (search API)
    kind: str  # "image" or "video"
    preview_url: str  # native image URL or video thumbnail
    width: int = 0
    height: int = 0
    variants: tuple[MediaVariant, ...] = ()


@dataclass(frozen=True)
class Post:
    id: int
    text: str  # raw body, HTML entities still encoded
    author: Author | None = None
    media: tuple[MediaAttachment, ...] = ()
    in_reply_to_id: int | None = None


@dataclass(frozen=True)
class ConversationPost:
    """A reply as returned by the recent-search endpoint."""

    id: int
    text: str
    media_keys: tuple[str, ...] = ()
    in_reply_to_id: int | None = None


@dataclass(frozen=True)
class ConversationPage:
    posts: list[ConversationPost] = field(default_factory=list)
    media: dict[str, MediaAttachment] = field(default_factory=dict)
    next_cursor: str | None = None


@dataclass(frozen=True)
class Conversation:
    """All pages of a conversation merged together.

    Posts keep the search endpoint's order, newest first.
    """

    id: str
    posts: list[ConversationPost] = field(default_factory=list)
    media: dict[str, MediaAttachment] = field(default_factory=dict)

    @property
    def post_ids(self) -> set[int]:
        return {p.id for p in self.posts}


@dataclass(frozen=True)
class Image:
    id: str
    url: str
    width: int
    height: int


@dataclass(frozen=True)
class Video:
    id: str
    url: str
    thumb_url: str
    mime_type: str
    width: int
    height: int


ResolvedMedia = Image | Video


@dataclass(frozen=True)
class ThreadEntity:
    text: str
    media: tuple[ResolvedMedia, ...] = ()


@dataclass(frozen=True)
class Reply:
    text: str
    author_name: str | None = None
    avatar_url: str | None = None
    media: tuple[ResolvedMedia, ...] = ()


@dataclass(frozen=True)
class Thread:
    entities: list[ThreadEntity]
    author_name: str | None = None
    avatar_url: str | None = None
    # Media as the single-post reply of the anchor showed them
    anchor_media: tuple[ResolvedMedia, ...] = ()


@dataclass(frozen=True)
class OutputChunk:
    text: str
    media: tuple[ResolvedMedia, ...] = ()
    entities: tuple[ThreadEntity, ...] = ()
