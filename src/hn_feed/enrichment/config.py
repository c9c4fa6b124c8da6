"""Constants and tuning parameters for the enrichment pipeline."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: Browser-like user agent; many sites refuse requests without one.
USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36 HNFeed/0.1"
)

#: Headers sent with every linked-page request.
PAGE_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

#: Content-Type prefixes that are never parsed as HTML.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/octet-stream",
        "image/",
        "video/",
        "audio/",
        "font/",
    }
)

#: Bytes of a page body downloaded and handed to the HTML parser.  Reading
#: stops once this many have arrived.
MAX_HTML_BYTES: int = 2 * 1024 * 1024

# ---------------------------------------------------------------------------
# Description limits
# ---------------------------------------------------------------------------

#: Marker appended by :func:`~hn_feed.enrichment.sanitizer.truncate`.
ELLIPSIS: str = "..."

#: Characters of visible page text used for the last-resort snippet.
BODY_SNIPPET_CHARS: int = 300

#: Shortest line kept by the line filter in ``clean``.
MIN_LINE_CHARS: int = 10

#: ``<img>`` elements must exceed this in both declared dimensions.
MIN_CONTENT_IMAGE_PX: int = 200

# ---------------------------------------------------------------------------
# Known hosts
# ---------------------------------------------------------------------------

#: Hosts whose favicon is a fixed logo (preprint servers).
STATIC_LOGO_HOSTS: dict[str, str] = {
    "arxiv.org": "https://static.arxiv.org/static/browse/0.3.4/images/arxiv-logo-fb.png",
}

#: Hosts that serve YouTube videos.
YOUTUBE_HOSTS: frozenset[str] = frozenset(
    {"youtube.com", "m.youtube.com", "music.youtube.com", "youtu.be", "youtube-nocookie.com"}
)

#: Predictable thumbnail for a YouTube video id.
YOUTUBE_THUMBNAIL_URL: str = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"

#: YouTube Data API endpoint for video snippets.
YOUTUBE_API_URL: str = "https://www.googleapis.com/youtube/v3/videos"

#: Third-party favicon-by-domain service, last step of the favicon cascade.
FAVICON_SERVICE_URL: str = "https://www.google.com/s2/favicons?domain={domain}&sz=64"

# ---------------------------------------------------------------------------
# Selector tables (order is the cascade order)
# ---------------------------------------------------------------------------

#: ``(attribute, value)`` pairs of ``<meta>`` tags carrying an image URL.
IMAGE_META_SELECTORS: tuple[tuple[str, str], ...] = (
    ("property", "og:image"),
    ("name", "twitter:image"),
    ("itemprop", "image"),
)

#: CSS selectors for CMS thumbnail containers (WordPress and friends).
CMS_THUMBNAIL_SELECTORS: tuple[str, ...] = (
    ".featured-image img",
    ".post-thumbnail img",
    ".wp-post-image",
    "img.attachment-post-thumbnail",
)

#: ``(attribute, value)`` pairs of ``<meta>`` tags carrying a description.
DESCRIPTION_META_SELECTORS: tuple[tuple[str, str], ...] = (
    ("property", "og:description"),
    ("name", "description"),
    ("name", "twitter:description"),
    ("name", "citation_abstract"),
    ("property", "dc.description"),
    ("name", "dc.description"),
    ("name", "abstract"),
)
