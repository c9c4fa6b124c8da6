"""Service construction and FastAPI dependency providers.

The enrichment services share one ``httpx.AsyncClient`` and one cache store
per process.  :func:`build_services` wires them together; ``main.py`` calls
it at startup and stores the result on ``app.state``.  Route handlers
resolve them through the ``get_*`` dependencies, which tests override with
``app.dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from hn_feed.config.settings import Settings
from hn_feed.core.cache import CacheStore, create_cache_store
from hn_feed.enrichment.batching import Batcher
from hn_feed.enrichment.enricher import StoryEnricher
from hn_feed.enrichment.favicon import FaviconResolver
from hn_feed.enrichment.metadata import MetadataExtractor
from hn_feed.stories.client import HackerNewsClient
from hn_feed.stories.pager import ListingPager


@dataclass
class Services:
    """Process-wide collaborators owned by the application."""

    http_client: httpx.AsyncClient
    cache: CacheStore
    pager: ListingPager

    async def aclose(self) -> None:
        await self.http_client.aclose()
        await self.cache.close()


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared client for upstream, page and favicon requests."""
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=settings.max_redirects,
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
    )


def build_pager(
    settings: Settings,
    http_client: httpx.AsyncClient,
    cache: CacheStore,
) -> ListingPager:
    """Wire the enrichment pipeline from settings."""
    upstream = HackerNewsClient(
        http_client, settings.hn_api_base, timeout=settings.upstream_timeout
    )
    enricher = StoryEnricher(
        upstream,
        MetadataExtractor(
            http_client,
            page_timeout=settings.page_timeout,
            youtube_api_key=settings.youtube_api_key,
        ),
        FaviconResolver(
            http_client,
            cache,
            ttl=settings.favicon_ttl,
            probe_timeout=settings.probe_timeout,
            page_timeout=settings.page_timeout,
        ),
        cache,
        story_ttl=settings.story_ttl,
        metadata_ttl=settings.metadata_ttl,
        metadata_rank_cutoff=settings.metadata_rank_cutoff,
    )
    return ListingPager(
        upstream,
        enricher,
        cache,
        Batcher(settings.enrich_batch_size, settings.enrich_batch_delay),
        page_size=settings.page_size,
        story_ids_ttl=settings.story_ids_ttl,
        page_cache_ttl=settings.page_cache_ttl,
    )


def build_services(settings: Settings) -> Services:
    http_client = build_http_client(settings)
    cache = create_cache_store(settings)
    return Services(
        http_client=http_client,
        cache=cache,
        pager=build_pager(settings, http_client, cache),
    )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_pager(request: Request) -> ListingPager:
    """The application's :class:`ListingPager`."""
    return get_services(request).pager


def get_cache(request: Request) -> CacheStore:
    """The application's cache store."""
    return get_services(request).cache
