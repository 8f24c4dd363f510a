"""Usage tracking through an Umami instance.

Hits are posted from a background thread and failures are only logged, so
analytics can never slow down or break the relay.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor

import httpx

logger = logging.getLogger(__name__)

HOSTNAME = "twitter_relay"


def page_view(website_id: str, name: str) -> dict:
    return {
        "type": "event",
        "payload": {
            "website": website_id,
            "url": f"/{name}",
            "referrer": "",
            "hostname": HOSTNAME,
            "language": "en-US",
            "screen": "1920x1080",
        },
    }


class Analytics:
    """Fire-and-forget hit recorder. Disabled when url or website_id is unset."""

    def __init__(
        self,
        url: str | None = None,
        website_id: str | None = None,
        timeout: float = 5.0,
    ):
        self.url = url.rstrip("/") if url else None
        self.website_id = website_id
        self._client: httpx.Client | None = None
        self._executor: ThreadPoolExecutor | None = None
        if self.enabled:
            self._client = httpx.Client(
                timeout=timeout,
                headers={"User-Agent": "Mozilla/5.0 (compatible; twitter-relay)"},
            )
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="analytics"
            )

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.website_id)

    def track_hit(self, name: str) -> Future | None:
        """Queue a hit. Returns the pending future, or None when disabled."""
        if self._executor is None:
            return None
        return self._executor.submit(self._send, name)

    def _send(self, name: str) -> None:
        try:
            response = self._client.post(
                f"{self.url}/api/collect", json=page_view(self.website_id, name)
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("Dropping analytics hit %r: %s", name, e)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        if self._client is not None:
            self._client.close()
