"""Twitter API client for single posts and conversation search.

Authentication is app-only: the client id/secret pair is exchanged once for a
bearer token (``fetch_bearer_token``) and the resulting BearerToken is handed
to every TwitterClient explicitly.

Single posts come from the v1.1 ``statuses/show`` endpoint because it returns
the author and the full media entities in one call. Conversation ids and
thread replies come from API v2.
"""

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass

import httpx

from .models import ConversationPage, Post
from .errors import TwitterAPIError
from .parser import parse_search_page, parse_status

logger = logging.getLogger(__name__)

API_URL = "https://api.twitter.com"
TOKEN_URL = f"{API_URL}/oauth2/token"
STATUS_URL = f"{API_URL}/1.1/statuses/show.json"
TWEET_URL = f"{API_URL}/2/tweets/{{post_id}}"
SEARCH_URL = f"{API_URL}/2/tweets/search/recent"

# Maximum page size accepted by search/recent
SEARCH_PAGE_SIZE = 100

MEDIA_FIELDS = (
    "alt_text,duration_ms,height,media_key,preview_image_url,type,url,"
    "variants,width"
)


@dataclass(frozen=True)
class BearerToken:
    """App-only OAuth2 token. Created once, shared read-only."""

    value: str

    def __repr__(self) -> str:
        return "BearerToken(***)"


def fetch_bearer_token(
    client_id: str, client_secret: str, timeout: float = 30.0
) -> BearerToken:
    """Exchange consumer credentials for an app-only bearer token."""
    response = httpx.post(
        TOKEN_URL,
        auth=(client_id, client_secret),
        data={"grant_type": "client_credentials"},
        timeout=timeout,
    )
    if response.status_code in (401, 403):
        raise TwitterAPIError(
            "Authentication failed. Check the Twitter client id and secret.",
            response.status_code,
        )
    response.raise_for_status()

    access_token = response.json().get("access_token")
    if not access_token:
        raise TwitterAPIError("Token response did not contain an access_token")
    return BearerToken(access_token)


class TwitterClient:
    """Client for the Twitter REST API using an app-only bearer token."""

    def __init__(self, token: BearerToken, timeout: float = 30.0):
        self._client = httpx.Client(
            headers={"authorization": f"Bearer {token.value}"},
            timeout=timeout,
            follow_redirects=True,
        )

    def fetch_post(self, post_id: int) -> Post:
        """Fetch a single post with its author and media."""
        data = self._get(
            STATUS_URL,
            params={
                "id": post_id,
                "tweet_mode": "extended",
                "include_entities": "true",
            },
        )
        return parse_status(data)

    def fetch_conversation_id(self, post_id: int) -> str | None:
        """Return the id of the conversation a post belongs to, if any."""
        data = self._get(
            TWEET_URL.format(post_id=post_id),
            params={"tweet.fields": "conversation_id"},
        )
        return (data.get("data") or {}).get("conversation_id") or None

    def search_conversation(
        self,
        conversation_id: str,
        author: str,
        cursor: str | None = None,
        max_results: int = SEARCH_PAGE_SIZE,
        with_includes: bool = True,
    ) -> ConversationPage:
        """Fetch one page of the author's own replies in a conversation.

        Restricting to ``from:`` and ``to:`` the author keeps third-party
        replies out of the thread.
        """
        params = {
            "query": (
                f"conversation_id:{conversation_id} from:{author} to:{author}"
            ),
            "max_results": max_results,
            "tweet.fields": "referenced_tweets",
        }
        if with_includes:
            params["expansions"] = "attachments.media_keys"
            params["media.fields"] = MEDIA_FIELDS
        if cursor:
            params["next_token"] = cursor

        return parse_search_page(self._get(SEARCH_URL, params=params))

    def iter_conversation_pages(
        self,
        conversation_id: str,
        author: str,
        cursor: str | None = None,
        max_results: int = SEARCH_PAGE_SIZE,
        with_includes: bool = True,
    ) -> Iterator[ConversationPage]:
        """Yield search pages until the API stops returning a cursor.

        Pass a cursor to resume from a later page.
        """
        page_num = 0
        while True:
            page_num += 1
            logger.debug(
                "Fetching conversation %s page %d...", conversation_id, page_num
            )
            page = self.search_conversation(
                conversation_id,
                author,
                cursor=cursor,
                max_results=max_results,
                with_includes=with_includes,
            )
            yield page

            cursor = page.next_cursor
            if not cursor:
                break

    def _get(self, url: str, params: dict) -> dict:
        response = self._client.get(url, params=params)

        if response.status_code == 429:
            reset_time = response.headers.get("x-rate-limit-reset")
            wait_msg = ""
            if reset_time:
                wait_seconds = int(reset_time) - int(time.time())
                if wait_seconds > 0:
                    wait_msg = f" Retry in {wait_seconds}s."
            raise TwitterAPIError(f"Rate limited by Twitter.{wait_msg}", 429)

        if response.status_code in (401, 403):
            raise TwitterAPIError(
                "Authentication failed. The bearer token may be revoked or "
                "lack access to this endpoint.",
                response.status_code,
            )

        if response.status_code == 404:
            raise TwitterAPIError("Post not found (404).", 404)

        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise TwitterAPIError(f"Response is not JSON: {e}") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
