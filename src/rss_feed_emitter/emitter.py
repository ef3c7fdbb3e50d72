"""Feed registry: track feeds by URL and emit their new entries."""

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any

from rss_feed_emitter.errors import TYPE_ERROR, FeedError
from rss_feed_emitter.events import Listener, NotificationBus
from rss_feed_emitter.feed_parser import HttpFeedFetcher
from rss_feed_emitter.models import (
    DEFAULT_EVENT_NAME,
    DEFAULT_REFRESH_MS,
    DEFAULT_USER_AGENT,
    FeedSnapshot,
    FeedState,
)
from rss_feed_emitter.poller import FeedPoller, Fetcher, poll_feed_once

logger = logging.getLogger(__name__)


def _check_config(config: Any) -> None:
    if not config or not isinstance(config, Mapping):
        raise FeedError(
            "You must call add() with a feed configuration mapping.", TYPE_ERROR
        )


def _check_url(config: Mapping) -> None:
    url = config.get("url")
    valid = (
        isinstance(url, str) and url
        or isinstance(url, list) and url and all(isinstance(u, str) and u for u in url)
    )
    if not valid:
        raise FeedError(
            'Your configuration should have an "url" key with a string or list of strings',
            TYPE_ERROR,
        )


def _check_refresh(config: Mapping) -> None:
    refresh = config.get("refresh")
    if refresh is None:
        return
    if (
        isinstance(refresh, bool)
        or not isinstance(refresh, (int, float))
        or not math.isfinite(refresh)
        or refresh <= 0
    ):
        raise FeedError(
            'Your configuration should have a "refresh" key with a positive number of milliseconds',
            TYPE_ERROR,
        )


def _check_strings(config: Mapping) -> None:
    for key in ("user_agent", "event_name"):
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            raise FeedError(
                f'Your configuration "{key}" should be a string', TYPE_ERROR
            )


def validate_feed_config(config: Any) -> None:
    """Raise a type_error FeedError if ``config`` cannot describe a feed."""
    _check_config(config)
    _check_url(config)
    _check_refresh(config)
    _check_strings(config)


class FeedEmitter:
    """Poll RSS/Atom feeds and emit their new entries as events.

    Feeds are keyed by URL: adding a URL that is already tracked restarts
    it with the new configuration and an empty history. Listeners are
    attached with on()/once() and receive one FeedEntry per new entry,
    oldest first. Polling failures are emitted on "error"; if nothing
    listens for "error" they are only logged.

    add() starts asyncio tasks, so it must be called from a running loop.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        skip_first_load: bool = False,
        fetcher: Fetcher | None = None,
    ):
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.skip_first_load = skip_first_load
        self._fetcher = fetcher or HttpFeedFetcher()
        self._bus = NotificationBus()
        self._feeds: dict[str, FeedState] = {}

    # --- Events ---

    def on(self, event: str, listener: Listener) -> Listener:
        return self._bus.on(event, listener)

    def once(self, event: str, listener: Listener) -> Listener:
        return self._bus.once(event, listener)

    def off(self, event: str, listener: Listener) -> bool:
        return self._bus.off(event, listener)

    def emit(self, event: str, *args: Any) -> bool:
        return self._bus.emit(event, *args)

    def listener_count(self, event: str) -> int:
        return self._bus.listener_count(event)

    # --- Feed operations ---

    def add(self, *configs: Mapping | list[Mapping]) -> list[FeedSnapshot]:
        """Start tracking one or more feeds.

        Each config is a mapping with ``url`` (a string or a list of
        strings, one feed per URL) and optional ``refresh`` (milliseconds),
        ``user_agent`` and ``event_name``. A list of configs is treated as
        if each had been passed separately.

        Returns:
            Snapshots of every tracked feed.

        Raises:
            FeedError: ``type_error`` for a missing or malformed config.
        """
        if not configs:
            _check_config(None)

        for config in configs:
            if isinstance(config, list):
                self.add(*config)
                continue

            validate_feed_config(config)
            # Raises RuntimeError before anything is registered if no loop runs
            asyncio.get_running_loop()

            urls = config["url"] if isinstance(config["url"], list) else [config["url"]]
            for url in urls:
                self._add_feed(FeedState(
                    url=url,
                    refresh=config.get("refresh") or DEFAULT_REFRESH_MS,
                    user_agent=config.get("user_agent") or self.user_agent,
                    event_name=config.get("event_name") or DEFAULT_EVENT_NAME,
                ))

        return self.list_feeds()

    def _add_feed(self, feed: FeedState) -> None:
        existing = self._feeds.get(feed.url)
        if existing is not None:
            self._remove_feed(existing)

        async def cycle() -> int:
            return await poll_feed_once(
                feed, self._fetcher, self._bus,
                skip_first_load=self.skip_first_load,
            )

        feed.poller = FeedPoller(feed.refresh / 1000, cycle)
        self._feeds[feed.url] = feed
        feed.poller.start()
        logger.info("Tracking feed '%s' (refresh: %sms)", feed.url, feed.refresh)

    def remove(self, url: str) -> FeedSnapshot | None:
        """Stop tracking the feed at ``url``.

        Returns:
            Snapshot of the removed feed, or None if it was not tracked.

        Raises:
            FeedError: ``type_error`` if ``url`` is not a string.
        """
        if not isinstance(url, str):
            raise FeedError(
                "You must call remove() with a string containing the feed url",
                TYPE_ERROR,
            )

        feed = self._feeds.get(url)
        if feed is None:
            return None
        return self._remove_feed(feed)

    def _remove_feed(self, feed: FeedState) -> FeedSnapshot:
        feed.close()
        del self._feeds[feed.url]
        logger.info("Stopped tracking feed '%s'", feed.url)
        return feed.snapshot()

    def get(self, url: str) -> FeedSnapshot | None:
        feed = self._feeds.get(url)
        return feed.snapshot() if feed is not None else None

    def list_feeds(self) -> list[FeedSnapshot]:
        """Snapshots of every tracked feed, in the order they were added."""
        return [feed.snapshot() for feed in self._feeds.values()]

    def destroy(self) -> None:
        """Stop tracking every feed. Safe to call more than once."""
        for feed in list(self._feeds.values()):
            feed.close()
        self._feeds.clear()

    async def aclose(self) -> None:
        """Destroy, then wait for cycles that were already in flight."""
        pollers = [feed.poller for feed in self._feeds.values() if feed.poller is not None]
        self.destroy()
        for poller in pollers:
            await poller.wait_in_flight()

    async def __aenter__(self) -> "FeedEmitter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __len__(self) -> int:
        return len(self._feeds)

    def __contains__(self, url: object) -> bool:
        return url in self._feeds
