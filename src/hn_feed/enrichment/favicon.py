"""Best-effort favicon resolution with a per-domain cache.

Cascade, in order, for a page URL:

1. Cache lookup by normalised domain.
2. Fixed logo for known preprint hosts (no network, not cached).
3. ``HEAD {origin}/favicon.ico``.
4. ``<link rel="icon">`` / ``<link rel="shortcut icon">`` on the page itself.
5. The third-party favicon-by-domain service, verified with ``HEAD``.
6. The placeholder sentinel, cached so icon-less domains are not re-probed.

Every network step is isolated: a timeout, an HTTP error or an exception in
one step just moves the cascade on.  :meth:`FaviconResolver.resolve` always
returns a string.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx
from bs4 import BeautifulSoup, Tag

from hn_feed.api.metrics import cache_lookups_total, favicon_resolutions_total
from hn_feed.config.defaults import PLACEHOLDER_IMAGE
from hn_feed.core.cache import CacheStore, favicon_key, get_model, set_model
from hn_feed.core.exceptions import InvalidURLError
from hn_feed.core.schemas import FaviconResult
from hn_feed.enrichment.config import FAVICON_SERVICE_URL, STATIC_LOGO_HOSTS
from hn_feed.enrichment.http_fetcher import fetch_url, probe_url
from hn_feed.enrichment.urls import absolutize, host_matches, normalize_domain, origin

logger = logging.getLogger(__name__)

Strategy = Callable[[str, str], Awaitable["str | None"]]


def find_icon_link(html: str, page_url: str) -> str | None:
    """Return the absolute href of the page's icon ``<link>``, if declared."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all("link", href=True):
        if not isinstance(tag, Tag):
            continue
        rel = tag.get("rel") or []
        tokens = {token.lower() for token in (rel if isinstance(rel, list) else rel.split())}
        if "icon" in tokens:
            return absolutize(tag.get("href"), page_url)
    return None


class FaviconResolver:
    """Resolve an icon URL for the site hosting a page.

    Args:
        client: Shared HTTP client.
        cache: Cache store for per-domain results.
        ttl: Lifetime of cached results, including cached misses.
        probe_timeout: Timeout for ``HEAD`` existence checks.
        page_timeout: Timeout for fetching the page to read its ``<link>`` tags.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: CacheStore,
        *,
        ttl: int,
        probe_timeout: float = 3.0,
        page_timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._cache = cache
        self._ttl = ttl
        self._probe_timeout = probe_timeout
        self._page_timeout = page_timeout
        self.strategies: tuple[tuple[str, Strategy], ...] = (
            ("favicon_ico", self._favicon_ico),
            ("link_tag", self._link_tag),
            ("icon_service", self._icon_service),
        )

    async def resolve(self, url: str | None) -> str:
        """Return an icon URL for ``url``'s site, or the placeholder sentinel."""
        domain = normalize_domain(url)
        if not domain:
            return PLACEHOLDER_IMAGE

        cached = await get_model(self._cache, favicon_key(domain), FaviconResult)
        if cached is not None:
            cache_lookups_total.labels(layer="favicon", outcome="hit").inc()
            favicon_resolutions_total.labels(source="cache").inc()
            return cached.icon
        cache_lookups_total.labels(layer="favicon", outcome="miss").inc()

        for host, logo in STATIC_LOGO_HOSTS.items():
            if host_matches(domain, host):
                favicon_resolutions_total.labels(source="static_logo").inc()
                return logo

        icon = PLACEHOLDER_IMAGE
        source = "placeholder"
        for name, strategy in self.strategies:
            try:
                found = await strategy(url, domain)  # type: ignore[arg-type]
            except Exception as exc:  # noqa: BLE001
                logger.debug("enrichment: favicon step %s failed for %s: %s", name, domain, exc)
                continue
            if found:
                icon, source = found, name
                break

        favicon_resolutions_total.labels(source=source).inc()
        await set_model(
            self._cache, favicon_key(domain), self._ttl, FaviconResult(domain=domain, icon=icon)
        )
        return icon

    # ------------------------------------------------------------------
    # Cascade steps
    # ------------------------------------------------------------------

    async def _favicon_ico(self, url: str, domain: str) -> str | None:  # noqa: ARG002
        candidate = f"{origin(url)}/favicon.ico"
        result = await probe_url(candidate, client=self._client, timeout=self._probe_timeout)
        return candidate if result.ok else None

    async def _link_tag(self, url: str, domain: str) -> str | None:  # noqa: ARG002
        result = await fetch_url(url, client=self._client, timeout=self._page_timeout)
        if not result.ok or not result.content:
            return None
        try:
            return find_icon_link(result.content, result.final_url or url)
        except InvalidURLError:
            return None

    async def _icon_service(self, url: str, domain: str) -> str | None:  # noqa: ARG002
        candidate = FAVICON_SERVICE_URL.format(domain=domain)
        result = await probe_url(candidate, client=self._client, timeout=self._probe_timeout)
        return candidate if result.ok else None
