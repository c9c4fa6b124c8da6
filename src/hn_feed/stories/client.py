"""Client for the upstream story API.

Endpoints::

    GET {base}/{listing}.json    -> ranked array of item ids
    GET {base}/item/{id}.json    -> item object, or null for unknown ids

Failures are raised as typed exceptions: :class:`UpstreamUnavailableError`
for listings and :class:`ItemFetchError` for items.  What they turn into
(an HTTP 500 or an error record) is decided by the callers.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from hn_feed.api.metrics import upstream_requests_total
from hn_feed.config.defaults import CATEGORIES, DEFAULT_CATEGORY
from hn_feed.core.exceptions import ItemFetchError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

_ENDPOINT_TO_CATEGORY: dict[str, str] = {endpoint: short for short, endpoint in CATEGORIES.items()}


def normalize_category(value: str | None) -> str:
    """Map ``"top"`` / ``"topstories"`` style names to a short category name.

    Unknown or missing values fall back to the default category.
    """
    if not value:
        return DEFAULT_CATEGORY
    value = value.strip().lower()
    if value in CATEGORIES:
        return value
    return _ENDPOINT_TO_CATEGORY.get(value, DEFAULT_CATEGORY)


class HackerNewsClient:
    """Thin async wrapper over the upstream story API.

    Args:
        client: Shared HTTP client.
        base_url: API root, e.g. ``https://hacker-news.firebaseio.com/v0``.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, timeout: float = 10.0) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def _get_json(self, url: str) -> Any:
        response = await self._client.get(url, timeout=self._timeout)
        response.raise_for_status()
        return response.json()

    async def fetch_story_ids(self, category: str) -> list[int]:
        """Return the ranked id list for ``category`` exactly as upstream sends it.

        Raises:
            UpstreamUnavailableError: On any transport, HTTP or payload error.
        """
        endpoint = CATEGORIES[normalize_category(category)]
        url = f"{self._base_url}/{endpoint}.json"
        try:
            payload = await self._get_json(url)
        except (httpx.HTTPError, ValueError) as exc:
            upstream_requests_total.labels(endpoint="listing", outcome="error").inc()
            logger.warning("stories: listing fetch failed for %s: %s", category, exc)
            raise UpstreamUnavailableError(category, str(exc) or exc.__class__.__name__) from exc

        if not isinstance(payload, list):
            upstream_requests_total.labels(endpoint="listing", outcome="error").inc()
            raise UpstreamUnavailableError(category, f"unexpected payload {type(payload).__name__}")

        upstream_requests_total.labels(endpoint="listing", outcome="ok").inc()
        return [int(story_id) for story_id in payload if isinstance(story_id, int)]

    async def fetch_item(self, story_id: int) -> dict[str, Any]:
        """Return the raw item for ``story_id``.

        Raises:
            ItemFetchError: On transport, HTTP or payload errors, and when the
                item is ``null`` (deleted or unknown id).
        """
        url = f"{self._base_url}/item/{story_id}.json"
        try:
            payload = await self._get_json(url)
        except (httpx.HTTPError, ValueError) as exc:
            upstream_requests_total.labels(endpoint="item", outcome="error").inc()
            raise ItemFetchError(story_id, str(exc) or exc.__class__.__name__) from exc

        if not isinstance(payload, dict):
            upstream_requests_total.labels(endpoint="item", outcome="empty").inc()
            raise ItemFetchError(story_id, "empty item")

        upstream_requests_total.labels(endpoint="item", outcome="ok").inc()
        return payload
