"""Image and description extraction from a linked page.

Parsing uses BeautifulSoup with the stdlib ``html.parser`` backend, which
tolerates arbitrary and malformed markup.  The extraction is split in two:

- :func:`extract_from_html`: pure, synchronous; runs the image and
  description cascades over an HTML string.
- :class:`MetadataExtractor`: fetches the page, runs the pure extraction
  off the event loop, and applies the video-platform overrides.

Cascade order is data: :data:`IMAGE_EXTRACTORS` and
:data:`DESCRIPTION_EXTRACTORS` are tuples evaluated by
:func:`~hn_feed.enrichment.cascade.first_present`.  When no description
meta is present, the longest paragraph that survives sanitisation is used,
then a snippet of the page's visible text.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup, Tag

from hn_feed.api.metrics import page_fetches_total
from hn_feed.config.defaults import PLACEHOLDER_IMAGE
from hn_feed.core.exceptions import InvalidURLError
from hn_feed.core.schemas import DESCRIPTION_MAX_CHARS, MetadataResult
from hn_feed.enrichment.cascade import Extractor, first_present
from hn_feed.enrichment.config import (
    BODY_SNIPPET_CHARS,
    CMS_THUMBNAIL_SELECTORS,
    DESCRIPTION_META_SELECTORS,
    ELLIPSIS,
    IMAGE_META_SELECTORS,
    MIN_CONTENT_IMAGE_PX,
    YOUTUBE_API_URL,
)
from hn_feed.enrichment.http_fetcher import fetch_url
from hn_feed.enrichment.sanitizer import clean, is_gibberish, truncate
from hn_feed.enrichment.urls import absolutize, is_pdf_url, origin, youtube_thumbnail, youtube_video_id

logger = logging.getLogger(__name__)

_PX_RE = re.compile(r"^\s*(\d+)")
_INVISIBLE_TAGS = ["script", "style", "noscript", "template", "svg"]


@dataclass
class PageContext:
    """Parsed page handed to every extractor.

    Attributes:
        soup: Parsed document.
        base_url: URL relative references resolve against (after redirects).
    """

    soup: BeautifulSoup
    base_url: str


# ---------------------------------------------------------------------------
# Extractor building blocks
# ---------------------------------------------------------------------------


def _meta_content(attr: str, value: str) -> Extractor[PageContext]:
    """Extractor for ``<meta {attr}="{value}" content="...">``, case-insensitive."""
    pattern = re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)

    def extract(ctx: PageContext) -> str | None:
        tag = ctx.soup.find("meta", attrs={attr: pattern})
        if isinstance(tag, Tag):
            content = tag.get("content")
            return content if isinstance(content, str) else None
        return None

    extract.__name__ = f"meta[{attr}={value}]"
    return extract


def _rel_tokens(tag: Tag) -> set[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return {token.lower() for token in rel}


def _link_image_src(ctx: PageContext) -> str | None:
    for tag in ctx.soup.find_all("link", href=True):
        if isinstance(tag, Tag) and "image_src" in _rel_tokens(tag):
            return tag.get("href")  # type: ignore[return-value]
    return None


def _img_source(tag: Tag) -> str | None:
    for attr in ("src", "data-src", "data-lazy-src"):
        value = tag.get(attr)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _cms_thumbnail(ctx: PageContext) -> str | None:
    for selector in CMS_THUMBNAIL_SELECTORS:
        tag = ctx.soup.select_one(selector)
        if isinstance(tag, Tag):
            source = _img_source(tag)
            if source:
                return source
    return None


def _pixels(value: object) -> int:
    if not isinstance(value, str):
        return 0
    match = _PX_RE.match(value)
    return int(match.group(1)) if match else 0


def _large_content_image(ctx: PageContext) -> str | None:
    """First ``<img>`` whose declared width and height both exceed the minimum."""
    for tag in ctx.soup.find_all("img"):
        if not isinstance(tag, Tag):
            continue
        if (
            _pixels(tag.get("width")) > MIN_CONTENT_IMAGE_PX
            and _pixels(tag.get("height")) > MIN_CONTENT_IMAGE_PX
        ):
            source = _img_source(tag)
            if source:
                return source
    return None


def _abstract_paragraph(ctx: PageContext) -> str | None:
    tag = ctx.soup.select_one("p.abstract")
    return tag.get_text(" ", strip=True) if isinstance(tag, Tag) else None


IMAGE_EXTRACTORS: tuple[Extractor[PageContext], ...] = (
    *(_meta_content(attr, value) for attr, value in IMAGE_META_SELECTORS),
    _link_image_src,
    _cms_thumbnail,
    _large_content_image,
)

DESCRIPTION_EXTRACTORS: tuple[Extractor[PageContext], ...] = (
    *(_meta_content(attr, value) for attr, value in DESCRIPTION_META_SELECTORS),
    _abstract_paragraph,
)

# ---------------------------------------------------------------------------
# Description fallbacks
# ---------------------------------------------------------------------------


def finalize_description(text: str) -> str:
    """Sanitise and bound a description; gibberish becomes ``""``.

    Idempotent: an already finalised description comes back unchanged.
    """
    text = clean(text)
    if len(text) > DESCRIPTION_MAX_CHARS:
        text = truncate(text, DESCRIPTION_MAX_CHARS - len(ELLIPSIS))
    return "" if is_gibberish(text) else text


def _longest_clean_paragraph(soup: BeautifulSoup) -> str:
    paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")]
    paragraphs = [p for p in paragraphs if p]
    paragraphs.sort(key=len, reverse=True)
    for paragraph in paragraphs:
        cleaned = clean(paragraph)
        if cleaned and not is_gibberish(cleaned):
            return cleaned
    return ""


def _body_snippet(soup: BeautifulSoup) -> str:
    body = soup.body or soup
    text = body.get_text("\n", strip=True)
    snippet = text[:BODY_SNIPPET_CHARS]
    if len(text) > BODY_SNIPPET_CHARS:
        snippet += ELLIPSIS
    cleaned = clean(snippet)
    return "" if is_gibberish(cleaned) else cleaned


# ---------------------------------------------------------------------------
# Pure extraction
# ---------------------------------------------------------------------------


def extract_from_html(html: str, url: str, base_url: str | None = None) -> MetadataResult:
    """Run the image and description cascades over ``html``.

    Args:
        html: Raw page HTML, possibly malformed.
        url: The URL that was requested (PDF detection uses it).
        base_url: URL after redirects; relative references resolve against
            its origin.  Defaults to ``url``.

    Returns:
        A :class:`MetadataResult`; fields fall back to placeholder / ``""``.
    """
    soup = BeautifulSoup(html, "html.parser")
    ctx = PageContext(soup=soup, base_url=base_url or url)

    image = first_present(IMAGE_EXTRACTORS, ctx)
    if image:
        try:
            image = absolutize(image, ctx.base_url)
        except InvalidURLError:
            image = ""

    description = ""
    if not is_pdf_url(url):
        description = first_present(DESCRIPTION_EXTRACTORS, ctx)
        if not description:
            for tag in soup.find_all(_INVISIBLE_TAGS):
                tag.decompose()
            description = _longest_clean_paragraph(soup) or _body_snippet(soup)

    return MetadataResult(
        image=image or PLACEHOLDER_IMAGE,
        description=finalize_description(description),
    )


# ---------------------------------------------------------------------------
# Fetching extractor
# ---------------------------------------------------------------------------


class MetadataExtractor:
    """Fetch a linked page and extract its image and description.

    Never raises: an unreachable or unparseable page yields
    ``MetadataResult()`` (placeholder image, empty description).

    Args:
        client: Shared HTTP client (its ``max_redirects`` bounds redirects).
        page_timeout: Timeout for the page request.
        youtube_api_key: Enables YouTube Data API descriptions when set.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        page_timeout: float = 10.0,
        youtube_api_key: str | None = None,
    ) -> None:
        self._client = client
        self._page_timeout = page_timeout
        self._youtube_api_key = youtube_api_key

    async def extract(self, url: str) -> MetadataResult:
        try:
            origin(url)
        except InvalidURLError:
            page_fetches_total.labels(outcome="skipped").inc()
            return MetadataResult()

        result = await fetch_url(url, client=self._client, timeout=self._page_timeout)
        if not result.ok or result.content is None:
            page_fetches_total.labels(outcome="failed").inc()
            metadata = MetadataResult()
        else:
            page_fetches_total.labels(outcome="ok").inc()
            try:
                metadata = await asyncio.to_thread(
                    extract_from_html, result.content, url, result.final_url
                )
            except Exception as exc:  # noqa: BLE001
                logger.warning("enrichment: failed to parse %s: %s", url, exc)
                metadata = MetadataResult()

        return await self._apply_video_overrides(url, metadata)

    async def _apply_video_overrides(self, url: str, metadata: MetadataResult) -> MetadataResult:
        thumbnail = youtube_thumbnail(url)
        if thumbnail is None:
            return metadata
        update: dict[str, str] = {"image": thumbnail}
        video_description = finalize_description(await self.youtube_description(url))
        if video_description:
            update["description"] = video_description
        return metadata.model_copy(update=update)

    async def youtube_description(self, url: str) -> str:
        """Video description from the YouTube Data API; ``""`` when unavailable."""
        video_id = youtube_video_id(url)
        if not self._youtube_api_key or video_id is None:
            return ""
        try:
            response = await self._client.get(
                YOUTUBE_API_URL,
                params={"id": video_id, "part": "snippet", "key": self._youtube_api_key},
                timeout=self._page_timeout,
            )
            response.raise_for_status()
            items = response.json().get("items") or []
        except (httpx.HTTPError, ValueError) as exc:
            logger.info("enrichment: YouTube API lookup failed for %s: %s", video_id, exc)
            return ""
        if not items:
            return ""
        return (items[0].get("snippet") or {}).get("description") or ""
