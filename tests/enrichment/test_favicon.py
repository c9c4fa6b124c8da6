"""Unit tests for the favicon cascade.

Each test mocks exactly the requests its cascade step should make; respx
fails the test on any unexpected request.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from hn_feed.config.defaults import PLACEHOLDER_IMAGE
from hn_feed.core.cache import InMemoryCacheStore, favicon_key, get_model, set_model
from hn_feed.core.schemas import FaviconResult
from hn_feed.enrichment.config import STATIC_LOGO_HOSTS
from hn_feed.enrichment.favicon import FaviconResolver, find_icon_link

PAGE_URL = "https://example.com/post"
ICON_SERVICE = "https://www.google.com/s2/favicons"


def _resolver(client: httpx.AsyncClient, cache: InMemoryCacheStore) -> FaviconResolver:
    return FaviconResolver(client, cache, ttl=3600, probe_timeout=1, page_timeout=1)


class TestFindIconLink:
    def test_icon_rel(self) -> None:
        html = '<head><link rel="icon" href="/icon.png"></head>'
        assert find_icon_link(html, PAGE_URL) == "https://example.com/icon.png"

    def test_shortcut_icon_rel(self) -> None:
        html = '<head><link rel="shortcut icon" href="https://cdn.example.com/f.ico"></head>'
        assert find_icon_link(html, PAGE_URL) == "https://cdn.example.com/f.ico"

    def test_ignores_other_rels(self) -> None:
        html = (
            '<head><link rel="stylesheet" href="/s.css">'
            '<link rel="apple-touch-icon" href="/t.png"></head>'
        )
        assert find_icon_link(html, PAGE_URL) is None


@pytest.mark.asyncio
class TestFaviconResolver:
    async def test_favicon_ico_found(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        with respx.mock:
            respx.head("https://example.com/favicon.ico").mock(return_value=httpx.Response(200))
            icon = await _resolver(http_client, cache).resolve(PAGE_URL)

        assert icon == "https://example.com/favicon.ico"
        cached = await get_model(cache, favicon_key("example.com"), FaviconResult)
        assert cached is not None and cached.icon == icon

    async def test_falls_back_to_link_tag(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        with respx.mock:
            respx.head("https://example.com/favicon.ico").mock(return_value=httpx.Response(404))
            respx.get(PAGE_URL).mock(
                return_value=httpx.Response(
                    200,
                    text='<html><head><link rel="icon" href="/icon.png"></head></html>',
                    headers={"content-type": "text/html"},
                )
            )
            icon = await _resolver(http_client, cache).resolve(PAGE_URL)

        assert icon == "https://example.com/icon.png"

    async def test_falls_back_to_icon_service(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        with respx.mock:
            respx.head("https://example.com/favicon.ico").mock(
                side_effect=httpx.ConnectTimeout("slow")
            )
            respx.get(PAGE_URL).mock(return_value=httpx.Response(500))
            respx.head(url__startswith=ICON_SERVICE).mock(return_value=httpx.Response(200))
            icon = await _resolver(http_client, cache).resolve(PAGE_URL)

        assert icon.startswith(ICON_SERVICE)
        assert "domain=example.com" in icon

    async def test_all_steps_fail_caches_placeholder(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        resolver = _resolver(http_client, cache)
        with respx.mock:
            ico = respx.head("https://example.com/favicon.ico").mock(
                return_value=httpx.Response(404)
            )
            respx.get(PAGE_URL).mock(
                return_value=httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"})
            )
            respx.head(url__startswith=ICON_SERVICE).mock(return_value=httpx.Response(404))

            first = await resolver.resolve(PAGE_URL)
            second = await resolver.resolve("https://www.example.com/other")

        assert first == PLACEHOLDER_IMAGE
        assert second == PLACEHOLDER_IMAGE
        assert ico.call_count == 1

    async def test_cache_hit_skips_network(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        await set_model(
            cache,
            favicon_key("example.com"),
            60,
            FaviconResult(domain="example.com", icon="https://example.com/cached.png"),
        )
        with respx.mock(assert_all_called=False) as mock:
            icon = await _resolver(http_client, cache).resolve(PAGE_URL)

        assert icon == "https://example.com/cached.png"
        assert mock.calls.call_count == 0

    async def test_static_logo_host(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        with respx.mock(assert_all_called=False) as mock:
            icon = await _resolver(http_client, cache).resolve("https://arxiv.org/abs/2401.00001")

        assert icon == STATIC_LOGO_HOSTS["arxiv.org"]
        assert mock.calls.call_count == 0
        assert favicon_key("arxiv.org") not in cache

    async def test_invalid_url_is_placeholder(
        self, http_client: httpx.AsyncClient, cache: InMemoryCacheStore
    ) -> None:
        assert await _resolver(http_client, cache).resolve("not a url") == PLACEHOLDER_IMAGE
        assert await _resolver(http_client, cache).resolve(None) == PLACEHOLDER_IMAGE
