"""Long-polling loop that feeds Telegram updates to the processors."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import httpx

from .errors import TelegramAPIError
from .processors import Relay, UpdateProcessor, processor_for_update

logger = logging.getLogger(__name__)

# Seconds to wait after a failed getUpdates call
RETRY_DELAY = 5.0


def handle_update(relay: Relay, processor: UpdateProcessor) -> None:
    """Run one processor, logging instead of raising."""
    try:
        processor.process(relay)
    except Exception:
        logger.exception("Failed to process %s", type(processor).__name__)


def run_polling(
    relay: Relay,
    poll_timeout: int = 30,
    workers: int = 4,
    stop_event: threading.Event | None = None,
) -> None:
    """Poll for updates until stop_event is set.

    Updates are handled concurrently on a pool of workers; each one is
    independent of the others.
    """
    stop_event = stop_event or threading.Event()
    offset: int | None = None

    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="update"
    ) as pool:
        while not stop_event.is_set():
            try:
                updates = relay.telegram.get_updates(offset, timeout=poll_timeout)
            except (TelegramAPIError, httpx.HTTPError) as e:
                logger.warning("Polling failed: %s. Retrying in %.0fs", e, RETRY_DELAY)
                stop_event.wait(RETRY_DELAY)
                continue

            if updates:
                logger.info("Received %d updates", len(updates))

            for update in updates:
                offset = update["update_id"] + 1
                processor = processor_for_update(update)
                if processor is None:
                    logger.debug("Skipping update %d", update["update_id"])
                    continue
                pool.submit(handle_update, relay, processor)
