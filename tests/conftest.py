"""Shared pytest fixtures for HN Feed tests.

Fixture summary
---------------
cache           In-memory cache store, empty for each test.
http_client     Bare httpx.AsyncClient; pair it with ``respx.mock``.
make_item       Factory for upstream item payloads.
drip_server     Local server that trickles a body slowly; yields its URL.

No test needs Redis or outside network access: upstream calls are mocked with
respx (or served from a loopback server) and the cache is
:class:`InMemoryCacheStore`.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set env vars before any application modules are imported so that the
# module-level ``app`` in hn_feed.api.main is built against them.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "CACHE_BACKEND": "memory",
    "REDIS_URL": "",
    "ENRICH_BATCH_DELAY": "0",
    "LOG_LEVEL": "INFO",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from hn_feed.config.settings import get_settings  # noqa: E402
from hn_feed.core.cache import InMemoryCacheStore  # noqa: E402

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()


@pytest_asyncio.fixture
async def cache() -> AsyncGenerator[InMemoryCacheStore, None]:
    store = InMemoryCacheStore()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(follow_redirects=True, max_redirects=5) as client:
        yield client


@pytest_asyncio.fixture
async def drip_server() -> AsyncGenerator[str, None]:
    """Local HTTP server that promises a large body and sends 8 bytes every 0.5 s.

    Yields the base URL.  Each individual read succeeds well inside any
    per-read timeout, so only a deadline on the whole request stops it.
    """
    writers: list[asyncio.StreamWriter] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writers.append(writer)
        try:
            await reader.readuntil(b"\r\n\r\n")
            writer.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: text/html; charset=utf-8\r\n"
                b"Content-Length: 100000\r\n"
                b"\r\n"
            )
            await writer.drain()
            for _ in range(40):
                writer.write(b"<p>drip ")
                await writer.drain()
                await asyncio.sleep(0.5)
        except (asyncio.IncompleteReadError, ConnectionError, OSError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}"
    for writer in writers:
        writer.close()
    server.close()
    await server.wait_closed()


@pytest.fixture
def make_item() -> Callable[..., dict[str, Any]]:
    """Return a factory building upstream item payloads."""

    def _make(story_id: int, **overrides: Any) -> dict[str, Any]:
        item: dict[str, Any] = {
            "id": story_id,
            "type": "story",
            "title": f"Story {story_id}",
            "url": f"https://site{story_id}.example.com/post",
            "score": 100 + story_id,
            "time": 1_700_000_000 + story_id,
            "by": "alice",
            "descendants": 7,
        }
        item.update(overrides)
        return item

    return _make
