"""Application-wide exception hierarchy for HN Feed.

All custom exceptions subclass ``HnFeedError``.

Hierarchy::

    HnFeedError
    ├── UpstreamUnavailableError   (category, reason)
    ├── ItemFetchError             (story_id, reason)
    ├── InvalidURLError            (url)
    └── CacheUnavailableError      (operation, key)

Only ``UpstreamUnavailableError`` ever reaches the HTTP layer.  The others
are raised and handled inside the enrichment pipeline, where they turn into
placeholder data.
"""

from __future__ import annotations


class HnFeedError(Exception):
    """Base class for all HN Feed exceptions."""


class UpstreamUnavailableError(HnFeedError):
    """Raised when the ranked id list for a category cannot be fetched.

    Args:
        category: Short category name (e.g. ``"top"``).
        reason: Human-readable description of the failure.
    """

    def __init__(self, category: str, reason: str) -> None:
        super().__init__(f"Story listing '{category}' unavailable: {reason}")
        self.category = category
        self.reason = reason


class ItemFetchError(HnFeedError):
    """Raised when a single story item cannot be fetched or is empty.

    Args:
        story_id: Upstream item id.
        reason: Human-readable description of the failure.
    """

    def __init__(self, story_id: int, reason: str) -> None:
        super().__init__(f"Story {story_id} unavailable: {reason}")
        self.story_id = story_id
        self.reason = reason


class InvalidURLError(HnFeedError, ValueError):
    """Raised when a URL cannot be parsed into an absolute http(s) URL.

    Args:
        url: The offending value (may be ``None`` or empty).
    """

    def __init__(self, url: str | None) -> None:
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class CacheUnavailableError(HnFeedError):
    """Raised by strict cache stores when the backing store cannot be reached.

    The default stores log and swallow this condition; it exists so that
    callers that need to know (the health check) can ask for it.

    Args:
        operation: Store operation that failed (``"get"``, ``"mget"``, ...).
        key: Key involved, when there is exactly one.
    """

    def __init__(self, operation: str, key: str | None = None) -> None:
        msg = f"Cache store unavailable during '{operation}'"
        if key:
            msg += f" for key '{key}'"
        super().__init__(msg)
        self.operation = operation
        self.key = key
