"""Reconstruct a thread around an anchor post.

A thread is the author's chain of self-replies inside one conversation. The
search endpoint returns those replies newest first and never includes the
conversation's head, so the head is either the anchor itself or has to be
fetched separately.
"""

import logging
from collections.abc import Callable

from .client import TwitterClient
from .errors import InvalidMediaUrlError, MissingAuthorError, MissingConversationError
from .media import parse_url, resolve_all
from .models import (
    Author,
    Conversation,
    ConversationPost,
    MediaAttachment,
    Post,
    Reply,
    Thread,
    ThreadEntity,
)
from .parser import normalize_text

logger = logging.getLogger(__name__)

# The search endpoint refuses max_results below 10
THREAD_PROBE_SIZE = 10
THREAD_MIN_REPLIES = 2


def post_to_reply(post: Post) -> Reply:
    """Build the single-post reply for a post."""
    return Reply(
        text=normalize_text(post.text),
        author_name=post.author.name if post.author else None,
        avatar_url=_avatar_url(post.author),
        media=resolve_all(post.media, rank_variants=False),
    )


def post_to_entity(post: Post) -> ThreadEntity:
    return ThreadEntity(
        text=normalize_text(post.text),
        media=resolve_all(post.media, rank_variants=False),
    )


def reply_to_entity(
    reply: ConversationPost, media_table: dict[str, MediaAttachment]
) -> ThreadEntity:
    attachments = [media_table[k] for k in reply.media_keys if k in media_table]
    return ThreadEntity(
        text=normalize_text(reply.text),
        media=resolve_all(attachments, rank_variants=True),
    )


def fetch_conversation(client: TwitterClient, post: Post) -> Conversation | None:
    """Fetch every self-reply of the post's author in its conversation.

    Returns None when the post has no conversation id. Any API failure
    propagates; pages already fetched are discarded.
    """
    if post.author is None:
        raise MissingAuthorError(post.id)

    conversation_id = client.fetch_conversation_id(post.id)
    if not conversation_id:
        logger.info("Post %d has no conversation id", post.id)
        return None

    posts: list[ConversationPost] = []
    media: dict[str, MediaAttachment] = {}
    for page in client.iter_conversation_pages(
        conversation_id, post.author.screen_name
    ):
        posts.extend(page.posts)
        media.update(page.media)

    logger.info(
        "Fetched %d replies and %d media items in conversation %s",
        len(posts),
        len(media),
        conversation_id,
    )
    return Conversation(id=conversation_id, posts=posts, media=media)


def is_part_of_thread(client: TwitterClient, post: Post) -> bool:
    """Check whether the author replied to themselves in the conversation."""
    if post.author is None:
        return False

    conversation_id = client.fetch_conversation_id(post.id)
    if not conversation_id:
        return False

    page = client.search_conversation(
        conversation_id,
        post.author.screen_name,
        max_results=THREAD_PROBE_SIZE,
        with_includes=False,
    )
    return len(page.posts) >= THREAD_MIN_REPLIES


def assemble_thread(
    anchor: Post,
    conversation: Conversation,
    fetch_post: Callable[[int], Post],
) -> list[ThreadEntity]:
    """Order the anchor and its conversation into thread entities, oldest first."""
    entities: list[ThreadEntity] = []

    if anchor.id in conversation.post_ids:
        # Anchor sits inside the thread: the head is whatever the oldest
        # self-reply answers to.
        head_id = _in_reply_to(conversation.posts[-1], fetch_post)
        if head_id is None:
            logger.warning(
                "Oldest reply %d of conversation %s answers nothing",
                conversation.posts[-1].id,
                conversation.id,
            )
        else:
            logger.debug("Fetching thread head %d", head_id)
            entities.append(post_to_entity(fetch_post(head_id)))
    else:
        entities.append(post_to_entity(anchor))

    for reply in reversed(conversation.posts):
        entities.append(reply_to_entity(reply, conversation.media))

    return entities


def unroll_thread(client: TwitterClient, post_id: int) -> Thread:
    """Fetch a post and rebuild the whole thread it belongs to."""
    anchor = client.fetch_post(post_id)
    if anchor.author is None:
        raise MissingAuthorError(anchor.id)

    conversation = fetch_conversation(client, anchor)
    if conversation is None:
        raise MissingConversationError(anchor.id)

    entities = assemble_thread(anchor, conversation, client.fetch_post)
    logger.info("Assembled thread of %d posts for %d", len(entities), post_id)

    return Thread(
        entities=entities,
        author_name=anchor.author.name,
        avatar_url=_avatar_url(anchor.author),
        anchor_media=resolve_all(anchor.media, rank_variants=False),
    )


def _in_reply_to(
    reply: ConversationPost, fetch_post: Callable[[int], Post]
) -> int | None:
    if reply.in_reply_to_id is not None:
        return reply.in_reply_to_id
    # Search results may omit referenced_tweets; the full post never does
    return fetch_post(reply.id).in_reply_to_id


def _avatar_url(author: Author | None) -> str | None:
    if author is None or not author.avatar_url:
        return None
    try:
        return parse_url(author.avatar_url)
    except InvalidMediaUrlError:
        logger.warning("Ignoring malformed avatar URL for @%s", author.screen_name)
        return None
