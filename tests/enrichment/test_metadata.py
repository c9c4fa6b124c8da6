"""Unit tests for page metadata extraction.

``extract_from_html`` is exercised directly with inline HTML; the fetching
``MetadataExtractor`` is tested against respx-mocked pages.
"""

from __future__ import annotations

import time

import httpx
import pytest
import respx

from hn_feed.config.defaults import PLACEHOLDER_IMAGE
from hn_feed.core.schemas import DESCRIPTION_MAX_CHARS, MetadataResult
from hn_feed.enrichment.metadata import MetadataExtractor, extract_from_html, finalize_description

URL = "https://example.com/articles/post"
VIDEO_ID = "dQw4w9WgXcQ"
VIDEO_URL = f"https://www.youtube.com/watch?v={VIDEO_ID}"
VIDEO_THUMBNAIL = f"https://i.ytimg.com/vi/{VIDEO_ID}/hqdefault.jpg"


def _page(head: str = "", body: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


# ---------------------------------------------------------------------------
# Image cascade
# ---------------------------------------------------------------------------


class TestImageExtraction:
    def test_og_image_made_absolute(self) -> None:
        html = _page('<meta property="og:image" content="/cover.jpg">')
        assert extract_from_html(html, URL).image == "https://example.com/cover.jpg"

    def test_meta_match_is_case_insensitive(self) -> None:
        html = _page('<meta property="OG:Image" content="https://cdn.example.com/x.png">')
        assert extract_from_html(html, URL).image == "https://cdn.example.com/x.png"

    def test_og_image_wins_over_twitter_image(self) -> None:
        html = _page(
            '<meta name="twitter:image" content="/twitter.png">'
            '<meta property="og:image" content="/og.png">'
        )
        assert extract_from_html(html, URL).image == "https://example.com/og.png"

    def test_twitter_image(self) -> None:
        html = _page('<meta name="twitter:image" content="/twitter.png">')
        assert extract_from_html(html, URL).image == "https://example.com/twitter.png"

    def test_link_image_src(self) -> None:
        html = _page('<link rel="image_src" href="/linked.png">')
        assert extract_from_html(html, URL).image == "https://example.com/linked.png"

    def test_cms_thumbnail(self) -> None:
        html = _page(body='<div class="post-thumbnail"><img data-src="/thumb.jpg"></div>')
        assert extract_from_html(html, URL).image == "https://example.com/thumb.jpg"

    def test_large_content_image_only(self) -> None:
        html = _page(
            body=(
                '<img src="/icon.png" width="32" height="32">'
                '<img src="/wide.png" width="900" height="100">'
                '<img src="/hero.png" width="800" height="600">'
            )
        )
        assert extract_from_html(html, URL).image == "https://example.com/hero.png"

    def test_relative_to_redirect_target(self) -> None:
        html = _page('<meta property="og:image" content="/cover.jpg">')
        result = extract_from_html(html, URL, base_url="https://moved.example.org/new")
        assert result.image == "https://moved.example.org/cover.jpg"

    def test_no_image_is_placeholder(self) -> None:
        result = extract_from_html(_page(body="<p>No pictures on this page at all.</p>"), URL)
        assert result.image == PLACEHOLDER_IMAGE
        assert result.description == "No pictures on this page at all."


# ---------------------------------------------------------------------------
# Description cascade
# ---------------------------------------------------------------------------


class TestDescriptionExtraction:
    def test_og_description(self) -> None:
        html = _page('<meta property="og:description" content="A fine description of the article.">')
        assert extract_from_html(html, URL).description == "A fine description of the article."

    def test_meta_name_description(self) -> None:
        html = _page('<meta name="description" content="Plain meta description text.">')
        assert extract_from_html(html, URL).description == "Plain meta description text."

    def test_citation_abstract(self) -> None:
        html = _page('<meta name="citation_abstract" content="We study the thing in depth.">')
        assert extract_from_html(html, URL).description == "We study the thing in depth."

    def test_longest_paragraph_fallback(self) -> None:
        html = _page(
            body=(
                "<script>var tracking = 'a much longer script body that must never be used';</script>"
                "<p>Short paragraph here.</p>"
                "<p>This is the longest paragraph on the page and it should be chosen.</p>"
            )
        )
        result = extract_from_html(html, URL)
        assert result.description == "This is the longest paragraph on the page and it should be chosen."

    def test_gibberish_paragraph_skipped(self) -> None:
        html = _page(
            body=(
                '<p>{"key": "value", "more": "data here that is rather long indeed"}</p>'
                "<p>Readable second paragraph text.</p>"
            )
        )
        assert extract_from_html(html, URL).description == "Readable second paragraph text."

    def test_body_snippet_fallback(self) -> None:
        html = _page(body="<div>Some visible text in a div element here</div>")
        assert extract_from_html(html, URL).description == "Some visible text in a div element here"

    def test_pdf_url_has_no_description(self) -> None:
        html = _page('<meta property="og:description" content="Should not be used for PDFs.">')
        assert extract_from_html(html, "https://example.com/paper.pdf").description == ""

    def test_description_bounded(self) -> None:
        html = _page(f'<meta property="og:description" content="{"word " * 100}">')
        description = extract_from_html(html, URL).description
        assert len(description) <= DESCRIPTION_MAX_CHARS
        assert description.endswith("...")

    def test_description_is_sanitised(self) -> None:
        html = _page(
            '<meta property="og:description" '
            'content="Read the full story at https://example.com/x today">'
        )
        assert extract_from_html(html, URL).description == "Read the full story at today"

    def test_malformed_html_does_not_raise(self) -> None:
        html = "<html><head><meta property='og:image' content='/x.png'><body><p>Unclosed paragraph"
        result = extract_from_html(html, URL)
        assert result.image == "https://example.com/x.png"


class TestFinalizeDescription:
    def test_idempotent_at_limit(self) -> None:
        once = finalize_description("word " * 100)
        assert len(once) == DESCRIPTION_MAX_CHARS
        assert finalize_description(once) == once

    def test_gibberish_becomes_empty(self) -> None:
        assert finalize_description("%PDF-1.7 stream of binary data") == ""


# ---------------------------------------------------------------------------
# Fetching extractor
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestMetadataExtractor:
    async def test_extracts_fetched_page(self, http_client: httpx.AsyncClient) -> None:
        html = _page(
            '<meta property="og:image" content="/cover.jpg">'
            '<meta property="og:description" content="Fetched page description here.">'
        )
        with respx.mock:
            respx.get(URL).mock(
                return_value=httpx.Response(200, text=html, headers={"content-type": "text/html"})
            )
            result = await MetadataExtractor(http_client, page_timeout=1).extract(URL)

        assert result == MetadataResult(
            image="https://example.com/cover.jpg",
            description="Fetched page description here.",
        )

    async def test_failed_fetch_is_empty_result(self, http_client: httpx.AsyncClient) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(403))
            result = await MetadataExtractor(http_client, page_timeout=1).extract(URL)

        assert result == MetadataResult()

    async def test_trickling_page_degrades_within_timeout(
        self, http_client: httpx.AsyncClient, drip_server: str
    ) -> None:
        start = time.monotonic()
        result = await MetadataExtractor(http_client, page_timeout=1.0).extract(
            f"{drip_server}/slow-article"
        )
        elapsed = time.monotonic() - start

        assert elapsed < 2.0
        assert result == MetadataResult()

    async def test_invalid_url_skips_fetch(self, http_client: httpx.AsyncClient) -> None:
        with respx.mock(assert_all_called=False) as mock:
            result = await MetadataExtractor(http_client).extract("not a url")

        assert result == MetadataResult()
        assert mock.calls.call_count == 0

    async def test_youtube_thumbnail_overrides_page_image(
        self, http_client: httpx.AsyncClient
    ) -> None:
        html = _page(
            '<meta property="og:image" content="https://yt.example.com/other.jpg">'
            '<meta property="og:description" content="Video page description text.">'
        )
        with respx.mock:
            respx.get(url__startswith="https://www.youtube.com/watch").mock(
                return_value=httpx.Response(200, text=html, headers={"content-type": "text/html"})
            )
            result = await MetadataExtractor(http_client, page_timeout=1).extract(VIDEO_URL)

        assert result.image == VIDEO_THUMBNAIL
        assert result.description == "Video page description text."

    async def test_youtube_thumbnail_when_page_fails(self, http_client: httpx.AsyncClient) -> None:
        with respx.mock:
            respx.get(url__startswith="https://www.youtube.com/watch").mock(
                return_value=httpx.Response(429)
            )
            result = await MetadataExtractor(http_client, page_timeout=1).extract(VIDEO_URL)

        assert result.image == VIDEO_THUMBNAIL
        assert result.description == ""

    async def test_youtube_api_description(self, http_client: httpx.AsyncClient) -> None:
        with respx.mock:
            respx.get(url__startswith="https://www.youtube.com/watch").mock(
                return_value=httpx.Response(200, text=_page(), headers={"content-type": "text/html"})
            )
            api = respx.get(url__startswith="https://www.googleapis.com/youtube/v3/videos").mock(
                return_value=httpx.Response(
                    200, json={"items": [{"snippet": {"description": "Official video description."}}]}
                )
            )
            extractor = MetadataExtractor(http_client, page_timeout=1, youtube_api_key="k")
            result = await extractor.extract(VIDEO_URL)

        assert result.description == "Official video description."
        assert api.calls.last.request.url.params["id"] == VIDEO_ID
