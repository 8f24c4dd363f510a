"""Tests for the Twitter API client."""

import httpx
import pytest
import respx

from twitter_relay.client import (
    SEARCH_URL,
    STATUS_URL,
    TOKEN_URL,
    TWEET_URL,
    BearerToken,
    TwitterClient,
    fetch_bearer_token,
)
from twitter_relay.errors import TwitterAPIError

from conftest import CONVERSATION_ID, HEAD_ID

TOKEN = BearerToken("test-bearer")


@pytest.fixture
def empty_search() -> dict:
    return {"meta": {"result_count": 0}}


class TestFetchBearerToken:
    @respx.mock
    def test_exchanges_credentials(self):
        route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200, json={"token_type": "bearer", "access_token": "AAAA"}
            )
        )

        token = fetch_bearer_token("client", "secret")

        assert token == BearerToken("AAAA")
        request = route.calls.last.request
        assert request.headers["authorization"].startswith("Basic ")
        assert b"grant_type=client_credentials" in request.content

    @respx.mock
    def test_bad_credentials_raise(self):
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(403, json={}))

        with pytest.raises(TwitterAPIError, match="Authentication failed"):
            fetch_bearer_token("client", "wrong")

    def test_repr_hides_value(self):
        assert "test-bearer" not in repr(TOKEN)


class TestTwitterClient:
    @respx.mock
    def test_fetch_post(self, head_status):
        route = respx.get(STATUS_URL).mock(
            return_value=httpx.Response(200, json=head_status)
        )

        with TwitterClient(TOKEN) as client:
            post = client.fetch_post(HEAD_ID)

        assert post.id == HEAD_ID
        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer test-bearer"
        assert request.url.params["tweet_mode"] == "extended"
        assert request.url.params["id"] == str(HEAD_ID)

    @respx.mock
    def test_fetch_conversation_id(self):
        respx.get(TWEET_URL.format(post_id=HEAD_ID)).mock(
            return_value=httpx.Response(
                200,
                json={"data": {"id": str(HEAD_ID), "conversation_id": CONVERSATION_ID}},
            )
        )

        with TwitterClient(TOKEN) as client:
            assert client.fetch_conversation_id(HEAD_ID) == CONVERSATION_ID

    @respx.mock
    def test_missing_conversation_id_is_none(self):
        respx.get(TWEET_URL.format(post_id=HEAD_ID)).mock(
            return_value=httpx.Response(200, json={"data": {"id": str(HEAD_ID)}})
        )

        with TwitterClient(TOKEN) as client:
            assert client.fetch_conversation_id(HEAD_ID) is None

    @respx.mock
    def test_search_query_restricts_to_author(self, search_pages):
        route = respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json=search_pages[1])
        )

        with TwitterClient(TOKEN) as client:
            page = client.search_conversation(CONVERSATION_ID, "testuser")

        assert len(page.posts) == 2
        params = route.calls.last.request.url.params
        assert params["query"] == (
            f"conversation_id:{CONVERSATION_ID} from:testuser to:testuser"
        )
        assert params["max_results"] == "100"
        assert params["expansions"] == "attachments.media_keys"
        assert "variants" in params["media.fields"]
        assert "next_token" not in params

    @respx.mock
    def test_search_without_includes(self, empty_search):
        route = respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json=empty_search)
        )

        with TwitterClient(TOKEN) as client:
            client.search_conversation(
                CONVERSATION_ID, "testuser", max_results=10, with_includes=False
            )

        params = route.calls.last.request.url.params
        assert params["max_results"] == "10"
        assert "expansions" not in params

    @respx.mock
    def test_pages_follow_cursor(self, search_pages):
        route = respx.get(SEARCH_URL)
        route.side_effect = [
            httpx.Response(200, json=search_pages[0]),
            httpx.Response(200, json=search_pages[1]),
        ]

        with TwitterClient(TOKEN) as client:
            pages = list(client.iter_conversation_pages(CONVERSATION_ID, "testuser"))

        assert len(pages) == 2
        assert route.call_count == 2
        second = route.calls[1].request.url.params
        assert second["next_token"] == "b26v89c19zqg8o3fpzbm"

    @respx.mock
    def test_pages_resume_from_cursor(self, search_pages):
        route = respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json=search_pages[1])
        )

        with TwitterClient(TOKEN) as client:
            pages = list(
                client.iter_conversation_pages(
                    CONVERSATION_ID, "testuser", cursor="b26v89c19zqg8o3fpzbm"
                )
            )

        assert len(pages) == 1
        assert route.calls.last.request.url.params["next_token"] == "b26v89c19zqg8o3fpzbm"

    @respx.mock
    def test_failed_page_aborts_iteration(self, search_pages):
        route = respx.get(SEARCH_URL)
        route.side_effect = [
            httpx.Response(200, json=search_pages[0]),
            httpx.Response(503, json={}),
        ]

        with TwitterClient(TOKEN) as client:
            with pytest.raises(httpx.HTTPStatusError):
                list(client.iter_conversation_pages(CONVERSATION_ID, "testuser"))

    @respx.mock
    def test_rate_limit_raises(self):
        respx.get(STATUS_URL).mock(
            return_value=httpx.Response(
                429,
                json={"errors": [{"message": "Rate limit"}]},
                headers={"x-rate-limit-reset": "9999999999"},
            )
        )

        with TwitterClient(TOKEN) as client:
            with pytest.raises(TwitterAPIError, match="Rate limited"):
                client.fetch_post(HEAD_ID)

    @respx.mock
    def test_auth_failure_raises(self):
        respx.get(STATUS_URL).mock(return_value=httpx.Response(401, json={}))

        with TwitterClient(TOKEN) as client:
            with pytest.raises(TwitterAPIError, match="Authentication failed") as info:
                client.fetch_post(HEAD_ID)

        assert info.value.status_code == 401

    @respx.mock
    def test_not_found_raises(self):
        respx.get(STATUS_URL).mock(return_value=httpx.Response(404, json={}))

        with TwitterClient(TOKEN) as client:
            with pytest.raises(TwitterAPIError, match="not found"):
                client.fetch_post(HEAD_ID)

    @respx.mock
    def test_non_json_body_raises(self):
        respx.get(STATUS_URL).mock(return_value=httpx.Response(200, text="<html>"))

        with TwitterClient(TOKEN) as client:
            with pytest.raises(TwitterAPIError, match="not JSON"):
                client.fetch_post(HEAD_ID)
