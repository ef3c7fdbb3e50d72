"""Data models for RSS Feed Emitter."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

DEFAULT_REFRESH_MS = 60000
DEFAULT_EVENT_NAME = "new-item"
DEFAULT_USER_AGENT = "Python/RssFeedEmitter (https://pypi.org/project/rss-feed-emitter/)"


@dataclass(frozen=True)
class FeedEntry:
    """A single entry from a feed, as handed to listeners."""

    source_url: str
    title: str | None = None
    description: str | None = None
    summary: str | None = None
    published_at: datetime | None = None
    link: str | None = None
    original_link: str | None = None
    guid: str | None = None
    id: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class FeedSnapshot:
    """Read-only view of a tracked feed, returned by the registry."""

    url: str
    refresh: int | float
    user_agent: str
    event_name: str
    items: tuple[FeedEntry, ...]
    max_history_length: int


@dataclass
class FeedState:
    """Represents a tracked feed: configuration, history and its poller.

    Owned by FeedEmitter. ``seeded`` is set by the first commit into
    history. ``active`` is cleared by close(); a poll cycle
    that finds it cleared drops its results.
    """

    url: str
    refresh: int | float = DEFAULT_REFRESH_MS
    user_agent: str = DEFAULT_USER_AGENT
    event_name: str = DEFAULT_EVENT_NAME
    items: list[FeedEntry] = field(default_factory=list)
    max_history_length: int = 0
    poller: Any = None
    active: bool = True
    seeded: bool = False

    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            url=self.url,
            refresh=self.refresh,
            user_agent=self.user_agent,
            event_name=self.event_name,
            items=tuple(self.items),
            max_history_length=self.max_history_length,
        )

    def close(self) -> None:
        """Stop polling this feed. Safe to call more than once."""
        self.active = False
        if self.poller is not None:
            self.poller.cancel()
            self.poller = None
