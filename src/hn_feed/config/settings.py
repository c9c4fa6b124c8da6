"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
All tunables and secrets are accessed exclusively through this module;
never call ``os.getenv`` directly elsewhere in the codebase.

Usage::

    from hn_feed.config.settings import get_settings

    settings = get_settings()
    redis_url = settings.redis_url
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from hn_feed.config.defaults import (
    DEFAULT_FAVICON_TTL,
    DEFAULT_METADATA_TTL,
    DEFAULT_PAGE_CACHE_TTL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_STORY_IDS_TTL,
    DEFAULT_STORY_TTL,
    HN_API_BASE,
)


class Settings(BaseSettings):
    """Service configuration backed by environment variables and an optional .env file.

    Every field has a default so the service starts with no environment at all;
    in that case it talks to a local Redis and degrades to uncached operation
    if Redis is not running.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Cache store
    # ------------------------------------------------------------------

    redis_url: str = "redis://localhost:6379/0"
    """Redis connection URL for the shared cache.  An empty string disables Redis."""

    cache_backend: Literal["redis", "memory"] = "redis"
    """``"memory"`` keeps the cache in-process (single worker development only)."""

    # ------------------------------------------------------------------
    # Upstream story API
    # ------------------------------------------------------------------

    hn_api_base: str = HN_API_BASE
    """Base URL of the upstream story API (``{base}/{category}.json``)."""

    upstream_timeout: float = 10.0
    """Timeout in seconds for listing and item requests."""

    # ------------------------------------------------------------------
    # Paging and enrichment limits
    # ------------------------------------------------------------------

    page_size: int = DEFAULT_PAGE_SIZE
    """Number of story ids per page."""

    enrich_batch_size: int = 5
    """Stories enriched concurrently within one batch."""

    enrich_batch_delay: float = 0.1
    """Pause in seconds between enrichment batches."""

    metadata_rank_cutoff: Optional[int] = 10
    """Stories whose rank within the page is at or above this value skip the
    page scrape and only get a favicon.  ``None`` scrapes every story."""

    # ------------------------------------------------------------------
    # Outbound page fetches
    # ------------------------------------------------------------------

    page_timeout: float = 10.0
    """Timeout in seconds for fetching a linked page."""

    probe_timeout: float = 3.0
    """Timeout in seconds for favicon existence checks."""

    max_redirects: int = 5
    """Redirect bound for linked page fetches."""

    youtube_api_key: Optional[str] = None
    """YouTube Data API key.  When set, video descriptions come from the API."""

    # ------------------------------------------------------------------
    # Cache lifetimes (seconds)
    # ------------------------------------------------------------------

    story_ids_ttl: int = DEFAULT_STORY_IDS_TTL
    story_ttl: int = DEFAULT_STORY_TTL
    metadata_ttl: int = DEFAULT_METADATA_TTL
    favicon_ttl: int = DEFAULT_FAVICON_TTL
    page_cache_ttl: int = DEFAULT_PAGE_CACHE_TTL

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "HN Feed"
    """Human-readable application name shown in the OpenAPI docs."""

    debug: bool = False
    """Enable FastAPI debug mode and verbose error responses.  Never True in production."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    allowed_origins: list[str] = ["http://localhost:3000"]
    """Origins permitted by the CORS middleware (the feed front-end)."""

    metrics_enabled: bool = True
    """Expose Prometheus metrics at ``GET /metrics``."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
