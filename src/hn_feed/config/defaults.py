"""Fixed values shared across the service: categories, sentinels, known hosts.

These are not environment-configurable; tunables live in
:mod:`hn_feed.config.settings`.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Upstream story API
# ---------------------------------------------------------------------------

HN_API_BASE: str = "https://hacker-news.firebaseio.com/v0"

#: Discussion page for a story; used for text posts and fallback records.
HN_ITEM_URL: str = "https://news.ycombinator.com/item?id={story_id}"

#: Host of the aggregator's own discussion pages.
HN_HOST: str = "news.ycombinator.com"

#: Short category name -> upstream listing endpoint name.
CATEGORIES: dict[str, str] = {
    "top": "topstories",
    "new": "newstories",
    "best": "beststories",
    "ask": "askstories",
    "show": "showstories",
    "jobs": "jobstories",
}

DEFAULT_CATEGORY: str = "top"

DEFAULT_PAGE_SIZE: int = 30

# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------

#: Served when no image or icon could be resolved.
PLACEHOLDER_IMAGE: str = "/placeholder.jpg"

#: Local icon for stories that point at the aggregator itself.
HN_LOGO: str = "/hn-logo.png"

#: Title of the record returned when a story could not be fetched at all.
ERROR_TITLE: str = "Error fetching story"

# ---------------------------------------------------------------------------
# Cache lifetimes (seconds)
# ---------------------------------------------------------------------------

DEFAULT_STORY_IDS_TTL: int = 30 * 60
DEFAULT_STORY_TTL: int = 60 * 60
DEFAULT_METADATA_TTL: int = 12 * 60 * 60
DEFAULT_FAVICON_TTL: int = 24 * 60 * 60
DEFAULT_PAGE_CACHE_TTL: int = 5 * 60

#: ``Cache-Control`` header on the stories endpoint.
STORIES_CACHE_CONTROL: str = "s-maxage=300, stale-while-revalidate=60"
