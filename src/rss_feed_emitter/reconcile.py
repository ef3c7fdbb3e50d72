"""Novelty detection: compare a fetched batch with a feed's history.

Everything here is pure. ``reconcile`` takes the history as it stands and
the entries from one fetch and returns what to emit and what to keep; the
caller commits the result.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from rss_feed_emitter.models import FeedEntry

# History keeps at most this many times the size of the latest fetch.
HISTORY_LENGTH_MULTIPLIER = 3

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of reconciling one fetch against a feed's history."""

    new_items: tuple[FeedEntry, ...]
    history: tuple[FeedEntry, ...]
    max_history_length: int


def is_same_item(stored: FeedEntry, item: FeedEntry) -> bool:
    """Check whether ``stored`` is the same logical entry as ``item``.

    The branch is picked from the fields present on ``item`` only:
    guid first (RSS), then id (Atom), then link and title together.
    """
    if item.guid:
        return stored.guid == item.guid
    if item.id:
        return stored.id == item.id
    return stored.link == item.link and stored.title == item.title


def find_item(history: Iterable[FeedEntry], item: FeedEntry) -> FeedEntry | None:
    """Return the first history entry matching ``item``, or None."""
    for stored in history:
        if is_same_item(stored, item):
            return stored
    return None


def sort_by_date(items: Iterable[FeedEntry]) -> list[FeedEntry]:
    """Sort entries oldest first. Undated entries go first, in input order."""
    return sorted(items, key=_date_key)


def _date_key(item: FeedEntry) -> datetime:
    published = item.published_at
    if published is None:
        return _UNDATED
    if published.tzinfo is None:
        # Naive dates are taken as UTC so they compare with aware ones
        return published.replace(tzinfo=timezone.utc)
    return published


def trim_history(history: Sequence[FeedEntry], max_length: int) -> tuple[FeedEntry, ...]:
    """Keep only the most recent ``max_length`` entries."""
    if max_length <= 0:
        return ()
    return tuple(history[-max_length:])


def reconcile(history: Sequence[FeedEntry], fetched: Sequence[FeedEntry]) -> Reconciliation:
    """Work out which fetched entries are new and the history to keep.

    Args:
        history: Entries already seen for the feed, oldest first.
        fetched: Entries returned by the latest fetch, in any order.

    Returns:
        Reconciliation with the new entries oldest first, the updated
        history, and the recomputed history bound. When nothing is new
        the history is returned unchanged.
    """
    max_history_length = len(fetched) * HISTORY_LENGTH_MULTIPLIER

    new_items = tuple(
        item for item in sort_by_date(fetched)
        if find_item(history, item) is None
    )

    if not new_items:
        return Reconciliation((), tuple(history), max_history_length)

    updated = trim_history([*history, *new_items], max_history_length)
    return Reconciliation(new_items, updated, max_history_length)
