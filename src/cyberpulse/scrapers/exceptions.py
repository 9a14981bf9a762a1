class FeedFetchError(Exception):
    """Raised when a feed cannot be retrieved through a transport alternative."""


class FeedParseError(Exception):
    """Raised when a retrieved body is not a usable RSS/Atom feed."""
