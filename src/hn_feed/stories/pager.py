"""Category listings, pagination and page assembly.

Read path for ``get_page(category, page)``:

1. Whole-page cache ``(category, page)``, the fastest path for repeat reads.
2. Category id list from the cache, or from upstream on a miss
   (deduplicated, order preserved, cached for ``story_ids_ttl``).
3. Fixed-size slice ``[(page-1)*size, page*size)``; past the end is ``[]``.
4. One ``mget`` over the per-story cache for the slice.
5. Missing ids are enriched through the :class:`Batcher` and written back
   in one pipelined ``set_many``.
6. The page, in upstream rank order, is cached as a whole.

Only a failing listing fetch propagates (as
:class:`~hn_feed.core.exceptions.UpstreamUnavailableError`).
"""

from __future__ import annotations

import json
import logging
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from hn_feed.api.metrics import cache_lookups_total
from hn_feed.core.cache import CacheStore, decode_model, page_key, story_ids_key, story_key
from hn_feed.core.schemas import StoryRecord
from hn_feed.enrichment.batching import Batcher
from hn_feed.enrichment.enricher import StoryEnricher
from hn_feed.stories.client import HackerNewsClient, normalize_category

logger = logging.getLogger(__name__)

_PAGE_ADAPTER = TypeAdapter(list[StoryRecord])


def dedupe(story_ids: Iterable[int]) -> list[int]:
    """Drop repeated ids, keeping the first occurrence's position."""
    return list(dict.fromkeys(story_ids))


def page_slice(story_ids: list[int], page: int, page_size: int) -> list[int]:
    """Ids on 1-based ``page``; empty past the end or for ``page < 1``."""
    if page < 1 or page_size < 1:
        return []
    start = (page - 1) * page_size
    return story_ids[start : start + page_size]


class ListingPager:
    """Serve enriched pages of a category listing.

    Args:
        upstream: Story API client for id lists.
        enricher: Builds records for ids missing from the story cache.
        cache: Shared cache store.
        batcher: Bounds concurrent enrichments.
        page_size: Ids per page.
        story_ids_ttl: Lifetime of cached id lists.
        page_cache_ttl: Lifetime of cached whole pages.  ``0`` disables them.
    """

    def __init__(
        self,
        upstream: HackerNewsClient,
        enricher: StoryEnricher,
        cache: CacheStore,
        batcher: Batcher,
        *,
        page_size: int = 30,
        story_ids_ttl: int = 1800,
        page_cache_ttl: int = 300,
    ) -> None:
        self._upstream = upstream
        self._enricher = enricher
        self._cache = cache
        self._batcher = batcher
        self.page_size = page_size
        self._story_ids_ttl = story_ids_ttl
        self._page_cache_ttl = page_cache_ttl

    async def get_story_ids(self, category: str) -> list[int]:
        """Deduplicated, ranked ids for ``category``, read through the cache."""
        category = normalize_category(category)
        key = story_ids_key(category)
        raw = await self._cache.get(key)
        if raw is not None:
            try:
                cached = json.loads(raw)
            except ValueError:
                cached = None
            if isinstance(cached, list):
                cache_lookups_total.labels(layer="story_ids", outcome="hit").inc()
                return cached
        cache_lookups_total.labels(layer="story_ids", outcome="miss").inc()

        story_ids = dedupe(await self._upstream.fetch_story_ids(category))
        await self._cache.set(key, self._story_ids_ttl, json.dumps(story_ids))
        logger.info("stories: refreshed %s listing with %d ids", category, len(story_ids))
        return story_ids

    async def get_page(self, category: str, page: int) -> list[StoryRecord]:
        """Enriched stories on ``page`` of ``category``, in upstream rank order.

        Raises:
            UpstreamUnavailableError: If the id list is not cached and the
                upstream listing cannot be fetched.
        """
        category = normalize_category(category)

        cached_page = await self._cached_page(category, page)
        if cached_page is not None:
            return cached_page

        story_ids = page_slice(await self.get_story_ids(category), page, self.page_size)
        if not story_ids:
            return []

        raw_records = await self._cache.mget([story_key(story_id) for story_id in story_ids])
        records: dict[int, StoryRecord] = {}
        for story_id, raw in zip(story_ids, raw_records):
            record = decode_model(raw, StoryRecord)
            if record is not None:
                records[story_id] = record
        cache_lookups_total.labels(layer="story", outcome="hit").inc(len(records))

        missing = [story_id for story_id in story_ids if story_id not in records]
        if missing:
            cache_lookups_total.labels(layer="story", outcome="miss").inc(len(missing))
            records.update(await self._enrich_missing(story_ids, missing))

        stories = [records[story_id] for story_id in story_ids]
        if self._page_cache_ttl > 0:
            await self._cache.set(
                page_key(category, page),
                self._page_cache_ttl,
                _PAGE_ADAPTER.dump_json(stories).decode(),
            )
        return stories

    async def _cached_page(self, category: str, page: int) -> list[StoryRecord] | None:
        if self._page_cache_ttl <= 0:
            return None
        raw = await self._cache.get(page_key(category, page))
        if raw is None:
            cache_lookups_total.labels(layer="page", outcome="miss").inc()
            return None
        try:
            stories = _PAGE_ADAPTER.validate_json(raw)
        except ValidationError:
            logger.warning("stories: discarding undecodable page cache for %s/%d", category, page)
            return None
        cache_lookups_total.labels(layer="page", outcome="hit").inc()
        return stories

    async def _enrich_missing(
        self, story_ids: list[int], missing: list[int]
    ) -> dict[int, StoryRecord]:
        # Rank is the story's position on the page, not within ``missing``.
        ranks = {story_id: rank for rank, story_id in enumerate(story_ids)}

        async def build(story_id: int, _index: int) -> StoryRecord:
            return await self._enricher.build(story_id, ranks[story_id])

        outcomes = await self._batcher.run(missing, build)
        fresh: dict[int, StoryRecord] = {}
        for outcome in outcomes:
            if outcome.ok and outcome.value is not None:
                fresh[outcome.item] = outcome.value
            else:
                fresh[outcome.item] = StoryEnricher.error_record(outcome.item)

        await self._cache.set_many(
            {story_key(story_id): record.model_dump_json() for story_id, record in fresh.items()},
            self._enricher.story_ttl,
        )
        logger.info("stories: enriched %d of %d stories on page", len(fresh), len(story_ids))
        return fresh
