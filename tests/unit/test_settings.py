"""Unit tests for environment-driven settings."""

from __future__ import annotations

import pytest

from hn_feed.config.settings import Settings, get_settings

_OVERRIDDEN = ("CACHE_BACKEND", "REDIS_URL", "ENRICH_BATCH_DELAY", "LOG_LEVEL")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _OVERRIDDEN:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings(_env_file=None)

    assert settings.hn_api_base == "https://hacker-news.firebaseio.com/v0"
    assert settings.cache_backend == "redis"
    assert settings.page_size == 30
    assert settings.enrich_batch_size == 5
    assert settings.metadata_rank_cutoff == 10
    assert settings.story_ids_ttl == 1800
    assert settings.story_ttl == 3600
    assert settings.metadata_ttl == 43200
    assert settings.favicon_ttl == 86400
    assert settings.youtube_api_key is None


def test_env_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("PAGE_SIZE", "10")
    clean_env.setenv("CACHE_BACKEND", "memory")
    clean_env.setenv("YOUTUBE_API_KEY", "abc")

    settings = Settings(_env_file=None)

    assert settings.page_size == 10
    assert settings.cache_backend == "memory"
    assert settings.youtube_api_key == "abc"


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
