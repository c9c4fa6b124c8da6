"""Cache store capability shared by every enrichment layer.

The pipeline caches four kinds of values (id lists, story records, per-URL
metadata, per-domain favicons) plus whole pages.  All of them go through the
small :class:`CacheStore` protocol so the core logic can run against Redis in
production and against :class:`InMemoryCacheStore` in tests.

The cache is a soft dependency.  :class:`RedisCacheStore` logs and swallows
every connection error: reads miss, writes are dropped, and the caller simply
recomputes.  Only :meth:`CacheStore.ping` reports unavailability, by raising
:class:`~hn_feed.core.exceptions.CacheUnavailableError`.

Typical usage::

    store = create_cache_store(get_settings())
    record = await get_model(store, story_key(42), StoryRecord)
    if record is None:
        record = await build()
        await set_model(store, story_key(42), ttl, record)
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, TypeVar

import redis.asyncio as aioredis
from pydantic import BaseModel, ValidationError

from hn_feed.config.settings import Settings
from hn_feed.core.exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# ---------------------------------------------------------------------------
# Key builders
# ---------------------------------------------------------------------------

KEY_PREFIX = "hnfeed"


def story_ids_key(category: str) -> str:
    return f"{KEY_PREFIX}:story_ids:{category}"


def story_key(story_id: int) -> str:
    return f"{KEY_PREFIX}:story:{story_id}"


def metadata_key(url: str) -> str:
    return f"{KEY_PREFIX}:metadata:{url}"


def favicon_key(domain: str) -> str:
    return f"{KEY_PREFIX}:favicon:{domain}"


def page_key(category: str, page: int) -> str:
    return f"{KEY_PREFIX}:page:{category}:{page}"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class CacheStore(Protocol):
    """Key-value store with per-key expiry.  Values are strings."""

    async def get(self, key: str) -> str | None: ...

    async def mget(self, keys: list[str]) -> list[str | None]: ...

    async def set(self, key: str, ttl: int, value: str) -> None: ...

    async def set_many(self, items: dict[str, str], ttl: int) -> None: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


class RedisCacheStore:
    """Redis-backed store that treats every Redis failure as a cache miss.

    Args:
        redis_url: Connection string, e.g. ``redis://localhost:6379/0``.
        client: Pre-built client, used by tests instead of ``redis_url``.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        client: aioredis.Redis | None = None,
    ) -> None:
        if client is None:
            if not redis_url:
                raise ValueError("RedisCacheStore needs a redis_url or a client")
            client = aioredis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        self._redis = client

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(key)
        except Exception:
            logger.warning("cache: Redis get failed for key '%s'", key)
            return None

    async def mget(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        try:
            return list(await self._redis.mget(keys))
        except Exception:
            logger.warning("cache: Redis mget failed for %d keys", len(keys))
            return [None] * len(keys)

    async def set(self, key: str, ttl: int, value: str) -> None:
        try:
            await self._redis.setex(key, ttl, value)
        except Exception:
            logger.warning("cache: Redis set failed for key '%s'", key)

    async def set_many(self, items: dict[str, str], ttl: int) -> None:
        """Write all items with the same TTL in one pipelined round trip."""
        if not items:
            return
        try:
            async with self._redis.pipeline(transaction=False) as pipe:
                for key, value in items.items():
                    pipe.setex(key, ttl, value)
                await pipe.execute()
        except Exception:
            logger.warning("cache: Redis pipelined set failed for %d keys", len(items))

    async def ping(self) -> None:
        try:
            await self._redis.ping()
        except Exception as exc:
            raise CacheUnavailableError("ping") from exc

    async def close(self) -> None:
        await self._redis.aclose()


# ---------------------------------------------------------------------------
# In-process stores
# ---------------------------------------------------------------------------


class InMemoryCacheStore:
    """Process-local store with expiry.  For tests and single-worker development.

    Expired entries are dropped when read, and writes sweep out every
    expired entry at most once per ``sweep_interval`` seconds, so the store
    holds roughly the keys written within the longest TTL in use.
    """

    def __init__(self, sweep_interval: float = 60.0) -> None:
        self._data: dict[str, tuple[float, str]] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = time.monotonic() + sweep_interval

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._sweep_interval

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= time.monotonic():
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [self._live(key) for key in keys]

    async def set(self, key: str, ttl: int, value: str) -> None:
        now = time.monotonic()
        if now >= self._next_sweep:
            self._sweep(now)
        self._data[key] = (now + ttl, value)

    def __len__(self) -> int:
        return len(self._data)

    async def set_many(self, items: dict[str, str], ttl: int) -> None:
        for key, value in items.items():
            await self.set(key, ttl, value)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return self._live(key) is not None


class NullCacheStore:
    """Store that never holds anything: every read misses, every write is dropped."""

    async def get(self, key: str) -> str | None:  # noqa: ARG002
        return None

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [None] * len(keys)

    async def set(self, key: str, ttl: int, value: str) -> None:  # noqa: ARG002
        return None

    async def set_many(self, items: dict[str, str], ttl: int) -> None:  # noqa: ARG002
        return None

    async def ping(self) -> None:
        raise CacheUnavailableError("ping")

    async def close(self) -> None:
        return None


def create_cache_store(settings: Settings) -> CacheStore:
    """Build the store selected by ``cache_backend`` / ``redis_url``.

    An empty ``redis_url`` with the Redis backend yields a
    :class:`NullCacheStore`, so the service still works, uncached.
    """
    if settings.cache_backend == "memory":
        return InMemoryCacheStore()
    if not settings.redis_url:
        logger.warning("cache: no redis_url configured; caching disabled")
        return NullCacheStore()
    return RedisCacheStore(settings.redis_url)


# ---------------------------------------------------------------------------
# Typed helpers
# ---------------------------------------------------------------------------


def decode_model(raw: str | None, model: type[ModelT]) -> ModelT | None:
    """Decode a cached JSON value; a corrupt entry counts as a miss."""
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except ValidationError:
        logger.warning("cache: discarding undecodable %s entry", model.__name__)
        return None


async def get_model(store: CacheStore, key: str, model: type[ModelT]) -> ModelT | None:
    return decode_model(await store.get(key), model)


async def set_model(store: CacheStore, key: str, ttl: int, value: BaseModel) -> None:
    await store.set(key, ttl, value.model_dump_json())
