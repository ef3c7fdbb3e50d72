"""Shared test fixtures for RSS Feed Emitter tests."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from rss_feed_emitter.models import FeedEntry


SAMPLE_RSS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
      <category>news</category>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <subtitle>A test Atom feed</subtitle>
  <id>urn:uuid:feed</id>
  <updated>2026-02-13T10:00:00Z</updated>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_NOT_A_FEED_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""

BASE_DATE = datetime(2026, 2, 12, 0, 0, tzinfo=timezone.utc)


def make_entry(n: int, url: str = "https://example.com/feed", **overrides) -> FeedEntry:
    """Entry number ``n``, published ``n`` hours after BASE_DATE."""
    fields = {
        "source_url": url,
        "title": f"Article {n}",
        "link": f"https://example.com/article-{n}",
        "guid": f"article-{n}",
        "published_at": BASE_DATE + timedelta(hours=n),
    }
    fields.update(overrides)
    return FeedEntry(**fields)


def make_entries(start: int, stop: int, url: str = "https://example.com/feed") -> list[FeedEntry]:
    return [make_entry(n, url) for n in range(start, stop)]


class FakeFetcher:
    """Scripted fetcher: returns (or raises) queued responses per call.

    Once the queue is exhausted the last response is repeated.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, url: str, user_agent: str):
        self.calls.append((url, user_agent))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = await response(url)
        return list(response)


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Yield to the loop until ``predicate()`` holds or fail after ``timeout``."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def sample_rss_xml():
    """Sample valid RSS 2.0 XML."""
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_atom_xml():
    """Sample valid Atom XML."""
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_not_a_feed_xml():
    """Sample XML that is not a feed."""
    return SAMPLE_NOT_A_FEED_XML
