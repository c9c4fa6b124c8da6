"""Async HTTP helpers for linked pages and favicon probes.

Uses ``httpx`` for all requests.  Neither helper raises for network or HTTP
failures: each returns a :class:`FetchResult` whose ``error`` names what went
wrong, and the caller decides whether that means placeholder data.

Redirect limits are a property of the shared client (``max_redirects``); the
client is built once per process in :mod:`hn_feed.api.main`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from hn_feed.enrichment.config import BINARY_CONTENT_TYPES, MAX_HTML_BYTES, PAGE_HEADERS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Result of a single HTTP request.

    Attributes:
        content: Decoded body for GETs, ``None`` for probes or failures.
        status_code: HTTP status code, or ``None`` on network error.
        final_url: URL after redirects, or the requested URL on error.
        error: Human-readable failure reason, or ``None`` on success.
    """

    content: str | None
    status_code: int | None
    final_url: str | None
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failure(url: str, error: str, status_code: int | None = None) -> FetchResult:
    return FetchResult(content=None, status_code=status_code, final_url=url, error=error)


# ---------------------------------------------------------------------------
# Binary content-type check
# ---------------------------------------------------------------------------


def _is_binary_content_type(content_type: str) -> bool:
    """Return ``True`` if the Content-Type indicates a non-text resource."""
    ct = content_type.lower().split(";")[0].strip()
    return any(ct.startswith(prefix) for prefix in BINARY_CONTENT_TYPES)


# ---------------------------------------------------------------------------
# Public fetch functions
# ---------------------------------------------------------------------------


async def _read_capped(response: httpx.Response) -> tuple[bytes, bool]:
    """Read at most ``MAX_HTML_BYTES`` of the body; flag whether it was cut."""
    chunks: list[bytes] = []
    received = 0
    async for chunk in response.aiter_bytes():
        chunks.append(chunk)
        received += len(chunk)
        if received >= MAX_HTML_BYTES:
            return b"".join(chunks)[:MAX_HTML_BYTES], True
    return b"".join(chunks), False


async def fetch_url(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout: float,
) -> FetchResult:
    """GET a page and return its HTML.

    Checks, in order: transport errors (timeout, redirect loop, connection),
    HTTP status >= 400, binary Content-Type, body decoding.  ``timeout``
    bounds the whole exchange, body included, so a site that trickles bytes
    is abandoned once it runs out.  At most ``MAX_HTML_BYTES`` of the body
    are downloaded.

    Args:
        url: Absolute URL to fetch.
        client: Shared :class:`httpx.AsyncClient`.
        timeout: Deadline in seconds for the whole request.

    Returns:
        A :class:`FetchResult`; ``content`` is set only on success.
    """
    try:
        async with asyncio.timeout(timeout):
            async with client.stream(
                "GET",
                url,
                timeout=timeout,
                follow_redirects=True,
                headers=PAGE_HEADERS,
            ) as response:
                final_url = str(response.url)

                if response.status_code >= 400:
                    logger.info("enrichment: HTTP %d for %s", response.status_code, url)
                    return _failure(
                        final_url, f"HTTP {response.status_code}", response.status_code
                    )

                content_type = response.headers.get("content-type", "")
                if _is_binary_content_type(content_type):
                    logger.debug(
                        "enrichment: skipping binary content-type '%s' for %s", content_type, url
                    )
                    return _failure(
                        final_url, f"binary content-type: {content_type}", response.status_code
                    )

                body, truncated = await _read_capped(response)
                status_code = response.status_code
                encoding = response.charset_encoding or "utf-8"
    except (TimeoutError, httpx.TimeoutException):
        logger.info("enrichment: timeout fetching %s", url)
        return _failure(url, "timeout")
    except httpx.TooManyRedirects:
        logger.info("enrichment: too many redirects for %s", url)
        return _failure(url, "too many redirects")
    except httpx.RequestError as exc:
        logger.info("enrichment: request error for %s: %s", url, exc)
        return _failure(url, f"request error: {exc}")
    except httpx.InvalidURL as exc:
        return _failure(url, f"invalid url: {exc}")

    if truncated:
        logger.debug("enrichment: body of %s cut at %d bytes", url, MAX_HTML_BYTES)

    try:
        html = body.decode(encoding, errors="ignore" if truncated else "replace")
    except LookupError as exc:
        logger.info("enrichment: decode error for %s: %s", url, exc)
        return _failure(final_url, f"decode error: {exc}", status_code)

    return FetchResult(
        content=html,
        status_code=status_code,
        final_url=final_url,
        error=None,
    )


async def probe_url(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout: float,
) -> FetchResult:
    """Check that ``url`` exists with a HEAD request.

    Success means exactly HTTP 200 after redirects.  ``timeout`` bounds the
    whole exchange, redirects included.
    """
    try:
        async with asyncio.timeout(timeout):
            response = await client.head(
                url,
                timeout=timeout,
                follow_redirects=True,
                headers={"User-Agent": PAGE_HEADERS["User-Agent"]},
            )
    except TimeoutError:
        logger.debug("enrichment: probe timed out for %s", url)
        return _failure(url, "probe error: timeout")
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.debug("enrichment: probe failed for %s: %s", url, exc)
        return _failure(url, f"probe error: {exc.__class__.__name__}")

    if response.status_code != 200:
        return _failure(str(response.url), f"HTTP {response.status_code}", response.status_code)
    return FetchResult(
        content=None,
        status_code=response.status_code,
        final_url=str(response.url),
        error=None,
    )
