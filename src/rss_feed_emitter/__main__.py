"""Entry point for RSS Feed Emitter: python -m rss_feed_emitter URL [URL ...]"""

import argparse
import asyncio
import logging

from rss_feed_emitter.config import load_settings
from rss_feed_emitter.emitter import FeedEmitter
from rss_feed_emitter.errors import FeedError
from rss_feed_emitter.feed_parser import HttpFeedFetcher
from rss_feed_emitter.models import FeedEntry

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
# Quiet noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("rss_feed_emitter")


def print_entry(entry: FeedEntry) -> None:
    date = entry.published_at.isoformat() if entry.published_at else "-"
    print(f"{date}  {entry.title or 'Untitled'}  {entry.link or ''}")


def print_error(error: FeedError) -> None:
    logger.error("%s", error.describe())


async def run(urls: list[str], refresh: int | None = None) -> None:
    """Watch ``urls`` until cancelled, printing each new entry."""
    settings = load_settings()
    emitter = FeedEmitter(
        user_agent=settings.user_agent,
        skip_first_load=settings.skip_first_load,
        fetcher=HttpFeedFetcher(timeout=settings.timeout),
    )
    emitter.on(settings.event_name, print_entry)
    emitter.on("error", print_error)

    emitter.add({
        "url": urls,
        "refresh": refresh or settings.refresh,
        "event_name": settings.event_name,
    })
    try:
        await asyncio.Event().wait()
    finally:
        await emitter.aclose()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="rss-feed-emitter", description="Print new entries from RSS/Atom feeds"
    )
    parser.add_argument("urls", nargs="+", metavar="URL")
    parser.add_argument("--refresh", type=int, default=None,
                        help="Refresh interval in milliseconds")
    args = parser.parse_args(argv)

    try:
        asyncio.run(run(args.urls, args.refresh))
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    main()
