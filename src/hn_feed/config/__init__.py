"""Configuration package for HN Feed.

Re-exports the most commonly used configuration symbols so that
callers can write::

    from hn_feed.config import get_settings, CATEGORIES, PLACEHOLDER_IMAGE

without needing to know which sub-module each symbol lives in.
"""

from __future__ import annotations

from hn_feed.config.defaults import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    ERROR_TITLE,
    HN_API_BASE,
    HN_HOST,
    HN_ITEM_URL,
    HN_LOGO,
    PLACEHOLDER_IMAGE,
    STORIES_CACHE_CONTROL,
)
from hn_feed.config.settings import Settings, get_settings

__all__ = [
    # settings
    "Settings",
    "get_settings",
    # defaults
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "ERROR_TITLE",
    "HN_API_BASE",
    "HN_HOST",
    "HN_ITEM_URL",
    "HN_LOGO",
    "PLACEHOLDER_IMAGE",
    "STORIES_CACHE_CONTROL",
]
