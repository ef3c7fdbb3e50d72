"""RSS Feed Emitter: poll RSS/Atom feeds and emit their new entries."""

__version__ = "0.1.0"

from rss_feed_emitter.emitter import FeedEmitter
from rss_feed_emitter.errors import FeedError
from rss_feed_emitter.models import DEFAULT_USER_AGENT, FeedEntry, FeedSnapshot

__all__ = [
    "FeedEmitter",
    "FeedError",
    "FeedEntry",
    "FeedSnapshot",
    "DEFAULT_USER_AGENT",
]
