"""Shared test fixtures."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from twitter_relay.analytics import Analytics
from twitter_relay.client import TwitterClient
from twitter_relay.models import Image, ThreadEntity, Video
from twitter_relay.parser import parse_search_page, parse_status
from twitter_relay.processors import Relay
from twitter_relay.telegram import TelegramClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"

HEAD_ID = 1600000000000000001
INTERIOR_ID = 1600000000000000003
CONVERSATION_ID = "1600000000000000001"


def load_fixture(name: str) -> dict:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


@pytest.fixture
def head_status() -> dict:
    """v1.1 status of the thread's first post (one photo)."""
    return load_fixture("status_head.json")


@pytest.fixture
def interior_status() -> dict:
    """v1.1 status of the third post of the thread (one video)."""
    return load_fixture("status_interior.json")


@pytest.fixture
def search_pages() -> list[dict]:
    """Two pages of self-replies, newest first, linked by next_token."""
    return [load_fixture("search_page1.json"), load_fixture("search_page2.json")]


@pytest.fixture
def head_post(head_status):
    return parse_status(head_status)


@pytest.fixture
def interior_post(interior_status):
    return parse_status(interior_status)


@pytest.fixture
def parsed_pages(search_pages):
    return [parse_search_page(p) for p in search_pages]


@pytest.fixture
def photo() -> Image:
    return Image(
        id="1", url="https://pbs.twimg.com/media/a.jpg", width=800, height=600
    )


@pytest.fixture
def video() -> Video:
    return Video(
        id="2",
        url="https://video.twimg.com/vid/b.mp4",
        thumb_url="https://pbs.twimg.com/thumb/b.jpg",
        mime_type="video/mp4",
        width=1280,
        height=720,
    )


@pytest.fixture
def five_entities(video) -> list[ThreadEntity]:
    """Short texts where entities 2 and 4 each carry one video."""
    return [
        ThreadEntity(text="zero"),
        ThreadEntity(text="one"),
        ThreadEntity(text="two", media=(video,)),
        ThreadEntity(text="three"),
        ThreadEntity(text="four", media=(video,)),
    ]


@pytest.fixture
def twitter() -> MagicMock:
    return MagicMock(spec=TwitterClient)


@pytest.fixture
def telegram() -> MagicMock:
    return MagicMock(spec=TelegramClient)


@pytest.fixture
def relay(twitter, telegram) -> Relay:
    return Relay(
        twitter=twitter,
        telegram=telegram,
        analytics=MagicMock(spec=Analytics),
    )
