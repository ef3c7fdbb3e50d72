"""RSS/Atom feed fetching (httpx) and parsing (feedparser)."""

import asyncio
import logging
from calendar import timegm
from datetime import datetime, timezone
from time import struct_time

import feedparser
import httpx

from rss_feed_emitter.errors import FETCH_URL_ERROR, INVALID_FEED, FeedError
from rss_feed_emitter.models import DEFAULT_USER_AGENT, FeedEntry

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml,text/xml"
DEFAULT_TIMEOUT = 30.0

# feedparser keys mapped onto FeedEntry fields; everything else goes to extra
_MODELED_KEYS = frozenset({
    "title", "description", "summary", "link", "id", "guid",
    "published", "published_parsed", "updated", "updated_parsed",
    "feedburner_origlink",
})


def parse_feed(content: bytes, url: str) -> list[FeedEntry]:
    """Parse a raw RSS or Atom document into FeedEntry objects.

    Args:
        content: The document body as fetched.
        url: The feed URL; set as ``source_url`` on every entry.

    Returns:
        Entries in document order.

    Raises:
        FeedError: ``invalid_feed`` if the document is not RSS or Atom.
    """
    parsed = feedparser.parse(content)

    version = parsed.get("version", "")
    if not version:
        raise FeedError(f"Cannot parse {url} XML", INVALID_FEED, url)

    if parsed.bozo:
        logger.warning(
            "Feed '%s' has formatting issues: %s", url, parsed.get("bozo_exception")
        )

    is_atom = version.startswith("atom")
    return [_to_entry(entry, url, is_atom) for entry in parsed.entries]


def _to_entry(entry: dict, url: str, is_atom: bool) -> FeedEntry:
    identifier = entry.get("id") or None
    return FeedEntry(
        source_url=url,
        title=entry.get("title"),
        description=entry.get("description"),
        summary=entry.get("summary"),
        published_at=_parse_date(entry),
        link=entry.get("link"),
        original_link=entry.get("feedburner_origlink"),
        guid=None if is_atom else identifier,
        id=identifier if is_atom else None,
        extra={k: v for k, v in entry.items() if k not in _MODELED_KEYS},
    )


def _parse_date(entry: dict) -> datetime | None:
    """Parse publication date from a feedparser entry."""
    for field in ("published_parsed", "updated_parsed"):
        time_struct = entry.get(field)
        if isinstance(time_struct, struct_time):
            try:
                return datetime.fromtimestamp(timegm(time_struct), tz=timezone.utc)
            except (ValueError, OverflowError):
                continue
    return None


async def fetch_feed(
    url: str,
    user_agent: str = DEFAULT_USER_AGENT,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[FeedEntry]:
    """Fetch a feed over HTTP and parse it.

    Raises:
        FeedError: ``fetch_url_error`` for a non-2xx status or a connection
            failure, ``invalid_feed`` if the body is not a feed.
    """
    headers = {"User-Agent": user_agent, "Accept": ACCEPT_HEADER}
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        ) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        raise FeedError(f"Cannot connect to {url}", FETCH_URL_ERROR, url) from e

    if not response.is_success:
        raise FeedError(
            f"This URL returned a {response.status_code} status code",
            FETCH_URL_ERROR,
            url,
        )

    return await asyncio.to_thread(parse_feed, response.content, url)


class HttpFeedFetcher:
    """Default fetcher used by FeedEmitter: ``await fetcher(url, user_agent)``."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, url: str, user_agent: str) -> list[FeedEntry]:
        return await fetch_feed(
            url, user_agent, timeout=self.timeout, transport=self.transport
        )
