"""URL helpers used at every URL-construction site of the pipeline.

Functions that need a well-formed absolute URL raise
:class:`~hn_feed.core.exceptions.InvalidURLError`; callers turn that into
placeholder data.  The ``*_or_empty`` style helpers never raise.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urljoin, urlparse

from hn_feed.config.defaults import HN_HOST, HN_ITEM_URL
from hn_feed.core.exceptions import InvalidURLError
from hn_feed.enrichment.config import YOUTUBE_HOSTS, YOUTUBE_THUMBNAIL_URL

_VIDEO_ID_RE = re.compile(r"^[0-9A-Za-z_-]{11}$")
_VIDEO_PATH_PREFIXES = ("/embed/", "/shorts/", "/live/", "/v/")


def origin(url: str | None) -> str:
    """Return ``scheme://host[:port]`` of an absolute http(s) URL.

    Raises:
        InvalidURLError: If ``url`` is empty, relative or not http(s).
    """
    if not url:
        raise InvalidURLError(url)
    try:
        parsed = urlparse(url.strip())
    except ValueError as exc:
        raise InvalidURLError(url) from exc
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURLError(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def hostname(url: str | None) -> str:
    """Return the lower-cased host of ``url``.

    Raises:
        InvalidURLError: If ``url`` is not an absolute http(s) URL.
    """
    origin(url)
    return (urlparse(url.strip()).hostname or "").lower()  # type: ignore[union-attr]


def normalize_domain(url: str | None) -> str:
    """Host of ``url`` without a leading ``www.``; empty string if malformed."""
    try:
        host = hostname(url)
    except InvalidURLError:
        return ""
    return host[4:] if host.startswith("www.") else host


def host_matches(host: str, domain: str) -> bool:
    """``True`` if ``host`` is ``domain`` or one of its subdomains."""
    return host == domain or host.endswith("." + domain)


def absolutize(href: str | None, base_url: str) -> str:
    """Resolve ``href`` against the origin of ``base_url``.

    Absolute hrefs are kept as they are; protocol-relative ones
    (``//cdn...``) take the scheme of ``base_url``.

    Raises:
        InvalidURLError: If ``href`` is empty or ``base_url`` is malformed.
    """
    if not href or not href.strip():
        raise InvalidURLError(href)
    href = href.strip()
    base = origin(base_url)
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base + "/", href)


def discussion_url(story_id: int) -> str:
    return HN_ITEM_URL.format(story_id=story_id)


def is_discussion_url(url: str | None) -> bool:
    """``True`` for links to the aggregator's own discussion pages."""
    return normalize_domain(url) == HN_HOST


def is_pdf_url(url: str) -> bool:
    """``True`` when the URL path ends in ``.pdf`` (query string ignored)."""
    try:
        path = urlparse(url).path
    except ValueError:
        return False
    return path.lower().endswith(".pdf")


def youtube_video_id(url: str | None) -> str | None:
    """Extract the 11-character video id from a YouTube URL, if any.

    Handles ``watch?v=``, ``youtu.be/<id>``, ``/embed/``, ``/shorts/``,
    ``/live/`` and ``/v/`` forms.
    """
    host = normalize_domain(url)
    if not any(host_matches(host, yt) for yt in YOUTUBE_HOSTS):
        return None
    parsed = urlparse(url.strip())  # type: ignore[union-attr]

    candidate: str | None = None
    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif parsed.path == "/watch":
        candidate = (parse_qs(parsed.query).get("v") or [None])[0]
    else:
        for prefix in _VIDEO_PATH_PREFIXES:
            if parsed.path.startswith(prefix):
                candidate = parsed.path[len(prefix):].split("/")[0]
                break

    if candidate and _VIDEO_ID_RE.match(candidate):
        return candidate
    return None


def youtube_thumbnail(url: str | None) -> str | None:
    """Deterministic thumbnail URL for a YouTube video link, else ``None``."""
    video_id = youtube_video_id(url)
    if video_id is None:
        return None
    return YOUTUBE_THUMBNAIL_URL.format(video_id=video_id)
