"""Assemble feed-ready :class:`StoryRecord` objects from upstream items.

Per story:

1. Canonical URL: the item's ``url``, or its discussion page for text posts.
2. Discussion-page stories get the local aggregator logo and no scrape;
   text posts use their own body as description.
3. Otherwise, stories ranked below ``metadata_rank_cutoff`` get page
   metadata (per-URL cache, then :class:`MetadataExtractor`).
4. Video links get their deterministic thumbnail regardless of the scrape.
5. A placeholder image falls back to the site's favicon.
6. The description is sanitised and bounded once more.

Any failure while fetching or assembling the item yields
:meth:`StoryEnricher.error_record`; :meth:`StoryEnricher.build` never raises.
"""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup

from hn_feed.api.metrics import cache_lookups_total, story_enrichments_total
from hn_feed.config.defaults import ERROR_TITLE, HN_LOGO, PLACEHOLDER_IMAGE
from hn_feed.core.cache import CacheStore, get_model, metadata_key, set_model, story_key
from hn_feed.core.exceptions import ItemFetchError
from hn_feed.core.schemas import MetadataResult, StoryRecord
from hn_feed.enrichment.favicon import FaviconResolver
from hn_feed.enrichment.metadata import MetadataExtractor, finalize_description
from hn_feed.enrichment.urls import discussion_url, is_discussion_url, normalize_domain, youtube_thumbnail
from hn_feed.stories.client import HackerNewsClient

logger = logging.getLogger(__name__)


def _text_post_body(text: str | None) -> str:
    """Plain text of a text post's HTML body."""
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


class StoryEnricher:
    """Turn story ids into enriched, cacheable records.

    Args:
        upstream: Story API client.
        metadata: Page metadata extractor.
        favicons: Favicon resolver used when no page image was found.
        cache: Store for per-URL metadata and per-story records.
        story_ttl: Lifetime of cached story records (error records included).
        metadata_ttl: Lifetime of cached per-URL metadata.
        metadata_rank_cutoff: Stories at this page rank or beyond skip the
            page scrape.  ``None`` scrapes every story.
    """

    def __init__(
        self,
        upstream: HackerNewsClient,
        metadata: MetadataExtractor,
        favicons: FaviconResolver,
        cache: CacheStore,
        *,
        story_ttl: int,
        metadata_ttl: int,
        metadata_rank_cutoff: int | None = None,
    ) -> None:
        self._upstream = upstream
        self._metadata = metadata
        self._favicons = favicons
        self._cache = cache
        self.story_ttl = story_ttl
        self._metadata_ttl = metadata_ttl
        self._metadata_rank_cutoff = metadata_rank_cutoff

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def enrich(self, story_id: int, rank: int) -> StoryRecord:
        """Build the record for ``story_id`` and write it to the story cache."""
        record = await self.build(story_id, rank)
        await set_model(self._cache, story_key(story_id), self.story_ttl, record)
        return record

    async def build(self, story_id: int, rank: int) -> StoryRecord:
        """Fetch and enrich ``story_id`` without caching the record.

        Returns:
            The enriched record, or :meth:`error_record` on any failure.
        """
        try:
            raw = await self._upstream.fetch_item(story_id)
            record = await self.enrich_item(raw, rank)
        except ItemFetchError as exc:
            logger.warning("enrichment: %s", exc)
            story_enrichments_total.labels(outcome="error_record").inc()
            return self.error_record(story_id)
        except Exception:
            logger.exception("enrichment: unexpected failure enriching story %s", story_id)
            story_enrichments_total.labels(outcome="error_record").inc()
            return self.error_record(story_id)
        story_enrichments_total.labels(outcome="ok").inc()
        return record

    async def enrich_item(self, raw: dict[str, Any], rank: int) -> StoryRecord:
        """Enrich an already fetched upstream item.

        Args:
            raw: Upstream item; must carry ``id``.
            rank: Zero-based position of the story within its page.
        """
        story_id = int(raw["id"])
        url = raw.get("url") or discussion_url(story_id)
        image = PLACEHOLDER_IMAGE
        description = ""

        if is_discussion_url(url):
            image = HN_LOGO
            description = _text_post_body(raw.get("text"))
        else:
            if self.should_scrape(rank):
                metadata = await self.metadata_for(url)
                image, description = metadata.image, metadata.description
            thumbnail = youtube_thumbnail(url)
            if thumbnail:
                image = thumbnail
            if image == PLACEHOLDER_IMAGE:
                image = await self._favicons.resolve(url)

        return StoryRecord(
            id=story_id,
            title=raw.get("title"),
            url=url,
            score=raw.get("score"),
            time=raw.get("time"),
            by=raw.get("by"),
            descendants=raw.get("descendants"),
            image=image,
            description=finalize_description(description),
            domain=normalize_domain(url),
        )

    async def metadata_for(self, url: str) -> MetadataResult:
        """Per-URL metadata, read through the cache."""
        key = metadata_key(url)
        cached = await get_model(self._cache, key, MetadataResult)
        if cached is not None:
            cache_lookups_total.labels(layer="metadata", outcome="hit").inc()
            return cached
        cache_lookups_total.labels(layer="metadata", outcome="miss").inc()
        metadata = await self._metadata.extract(url)
        await set_model(self._cache, key, self._metadata_ttl, metadata)
        return metadata

    def should_scrape(self, rank: int) -> bool:
        return self._metadata_rank_cutoff is None or rank < self._metadata_rank_cutoff

    @staticmethod
    def error_record(story_id: int) -> StoryRecord:
        """Placeholder record for a story that could not be enriched at all."""
        url = discussion_url(story_id)
        return StoryRecord(
            id=story_id,
            title=ERROR_TITLE,
            url=url,
            image=PLACEHOLDER_IMAGE,
            description="",
            domain=normalize_domain(url),
        )
