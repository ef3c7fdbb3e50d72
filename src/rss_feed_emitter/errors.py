"""Error type shared by the registry and the poll cycle."""

TYPE_ERROR = "type_error"
FETCH_URL_ERROR = "fetch_url_error"
INVALID_FEED = "invalid_feed"
FEED_NOT_FOUND = "feed_not_found"


class FeedError(Exception):
    """Raised (or emitted on "error") when a feed cannot be added or polled.

    Attributes:
        kind: One of TYPE_ERROR, FETCH_URL_ERROR, INVALID_FEED, FEED_NOT_FOUND.
        feed_url: URL of the feed that produced the error, if any.
    """

    def __init__(self, message: str, kind: str, feed_url: str | None = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.feed_url = feed_url

    def describe(self) -> str:
        return f"{self.kind} : {self.message}\n{self.feed_url}"

    def __repr__(self) -> str:
        return f"FeedError({self.message!r}, kind={self.kind!r}, feed_url={self.feed_url!r})"
