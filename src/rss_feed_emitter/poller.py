"""Background polling for tracked feeds."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from rss_feed_emitter.errors import FEED_NOT_FOUND, FETCH_URL_ERROR, INVALID_FEED, FeedError
from rss_feed_emitter.events import ERROR, NotificationBus, initial_load_event
from rss_feed_emitter.models import FeedEntry, FeedState
from rss_feed_emitter.reconcile import reconcile

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str], Awaitable[list[FeedEntry]]]


async def poll_feed_once(
    feed: FeedState,
    fetcher: Fetcher,
    bus: NotificationBus,
    skip_first_load: bool = False,
) -> int:
    """Run one fetch, reconcile, notify cycle for a feed.

    Errors are emitted on "error", never raised. Returns the number of
    new entries committed to history.
    """
    try:
        fetched = await fetcher(feed.url, feed.user_agent)
    except FeedError as e:
        _report(bus, feed, e)
        return 0
    except Exception as e:
        logger.exception("Feed '%s' unexpected error", feed.url)
        _report(bus, feed, FeedError(str(e), FETCH_URL_ERROR, feed.url))
        return 0

    try:
        return _commit(feed, fetched, bus, skip_first_load)
    except FeedError as e:
        if e.kind != FEED_NOT_FOUND:
            _report(bus, feed, e)
            return 0
        logger.debug("Feed '%s' was removed mid-cycle, dropping results", feed.url)
        return 0
    except Exception as e:
        logger.exception("Feed '%s' returned unusable entries", feed.url)
        _report(bus, feed, FeedError(str(e), INVALID_FEED, feed.url))
        return 0


def _commit(
    feed: FeedState,
    fetched: list[FeedEntry],
    bus: NotificationBus,
    skip_first_load: bool,
) -> int:
    # No awaits below: reads and writes the feed's current history in one step
    if not feed.active:
        raise FeedError("Feed is no longer tracked", FEED_NOT_FOUND, feed.url)

    result = reconcile(feed.items, fetched)
    feed.items = list(result.history)
    feed.max_history_length = result.max_history_length

    # The first commit seeds history, whichever tick's fetch lands first
    first_load = not feed.seeded
    feed.seeded = True

    if result.new_items:
        logger.info("Feed '%s': %d new items", feed.url, len(result.new_items))

    if not (first_load and skip_first_load):
        for item in result.new_items:
            # A listener may remove the feed while we are notifying
            if not feed.active:
                return len(result.new_items)
            bus.emit(feed.event_name, item)

    if first_load and feed.active:
        bus.emit(
            initial_load_event(feed.url),
            {"url": feed.url, "items": tuple(feed.items)},
        )

    return len(result.new_items)


def _report(bus: NotificationBus, feed: FeedState, error: FeedError) -> None:
    if not feed.active:
        logger.debug("Feed '%s' was removed mid-cycle, dropping error: %s", feed.url, error)
        return
    logger.warning("Feed '%s' error: %s", feed.url, error)
    bus.emit(ERROR, error)


class FeedPoller:
    """Repeating timer for a single feed.

    Runs ``cycle()`` as soon as it starts, then again every ``interval``
    seconds until cancelled. Each cycle is its own task, so a slow fetch
    does not delay the next tick and cycles may overlap.
    """

    def __init__(self, interval: float, cycle: Callable[[], Awaitable[object]]):
        self.interval = interval
        self._cycle = cycle
        self._task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    def start(self) -> None:
        """Start polling. Must be called with an asyncio loop running."""
        if self._task is not None:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        while True:
            task = asyncio.ensure_future(self._cycle())
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self.interval)

    def cancel(self) -> None:
        """Stop the timer. In-flight cycles are left to finish."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None

    async def wait_in_flight(self) -> None:
        """Wait for cycles that were already started."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
