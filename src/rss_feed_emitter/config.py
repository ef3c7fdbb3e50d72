"""Environment-based settings for RSS Feed Emitter."""

import os
from dataclasses import dataclass

from rss_feed_emitter.feed_parser import DEFAULT_TIMEOUT
from rss_feed_emitter.models import DEFAULT_EVENT_NAME, DEFAULT_REFRESH_MS, DEFAULT_USER_AGENT


@dataclass(frozen=True)
class EmitterSettings:
    refresh: int = DEFAULT_REFRESH_MS
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    skip_first_load: bool = False
    event_name: str = DEFAULT_EVENT_NAME


def load_settings(environ: dict | None = None) -> EmitterSettings:
    """Read settings from RSS_FEED_* environment variables.

    RSS_FEED_REFRESH          refresh interval in milliseconds
    RSS_FEED_USER_AGENT       user agent sent with every request
    RSS_FEED_TIMEOUT          HTTP timeout in seconds
    RSS_FEED_SKIP_FIRST_LOAD  "true", "1" or "yes" to seed history silently
    RSS_FEED_EVENT_NAME       event name for new entries

    Raises:
        ValueError: If a numeric variable is not a positive number.
    """
    env = os.environ if environ is None else environ

    refresh = int(env.get("RSS_FEED_REFRESH", DEFAULT_REFRESH_MS))
    timeout = float(env.get("RSS_FEED_TIMEOUT", DEFAULT_TIMEOUT))
    if refresh <= 0:
        raise ValueError(f"RSS_FEED_REFRESH must be positive, got {refresh}")
    if timeout <= 0:
        raise ValueError(f"RSS_FEED_TIMEOUT must be positive, got {timeout}")

    return EmitterSettings(
        refresh=refresh,
        user_agent=env.get("RSS_FEED_USER_AGENT") or DEFAULT_USER_AGENT,
        timeout=timeout,
        skip_first_load=env.get("RSS_FEED_SKIP_FIRST_LOAD", "").lower() in ("true", "1", "yes"),
        event_name=env.get("RSS_FEED_EVENT_NAME") or DEFAULT_EVENT_NAME,
    )
