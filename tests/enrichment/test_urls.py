"""Unit tests for the URL helpers."""

from __future__ import annotations

import pytest

from hn_feed.core.exceptions import InvalidURLError
from hn_feed.enrichment.urls import (
    absolutize,
    discussion_url,
    is_discussion_url,
    is_pdf_url,
    normalize_domain,
    origin,
    youtube_thumbnail,
    youtube_video_id,
)

VIDEO_ID = "dQw4w9WgXcQ"


class TestOrigin:
    def test_strips_path_and_query(self) -> None:
        assert origin("https://example.com/a/b?c=1") == "https://example.com"

    def test_keeps_port(self) -> None:
        assert origin("http://example.com:8080/x") == "http://example.com:8080"

    @pytest.mark.parametrize("url", [None, "", "/relative/path", "ftp://example.com/f", "not a url"])
    def test_rejects_non_http_urls(self, url: str | None) -> None:
        with pytest.raises(InvalidURLError):
            origin(url)

    def test_invalid_url_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            origin("mailto:someone@example.com")


class TestNormalizeDomain:
    def test_strips_www(self) -> None:
        assert normalize_domain("https://www.example.com/x") == "example.com"

    def test_keeps_other_subdomains(self) -> None:
        assert normalize_domain("https://blog.example.com/") == "blog.example.com"

    def test_lowercases(self) -> None:
        assert normalize_domain("https://WWW.Example.COM") == "example.com"

    def test_malformed_is_empty(self) -> None:
        assert normalize_domain("not a url") == ""
        assert normalize_domain(None) == ""


class TestAbsolutize:
    BASE = "https://example.com/articles/2024/post"

    def test_root_relative(self) -> None:
        assert absolutize("/img/cover.png", self.BASE) == "https://example.com/img/cover.png"

    def test_path_relative_resolves_against_origin(self) -> None:
        assert absolutize("cover.png", self.BASE) == "https://example.com/cover.png"

    def test_protocol_relative(self) -> None:
        assert absolutize("//cdn.example.net/a.png", self.BASE) == "https://cdn.example.net/a.png"

    def test_absolute_kept(self) -> None:
        assert absolutize("https://other.org/a.png", self.BASE) == "https://other.org/a.png"

    def test_empty_href_raises(self) -> None:
        with pytest.raises(InvalidURLError):
            absolutize("  ", self.BASE)

    def test_bad_base_raises(self) -> None:
        with pytest.raises(InvalidURLError):
            absolutize("/a.png", "nonsense")


class TestDiscussionUrls:
    def test_discussion_url(self) -> None:
        assert discussion_url(42) == "https://news.ycombinator.com/item?id=42"

    def test_is_discussion_url(self) -> None:
        assert is_discussion_url(discussion_url(1)) is True
        assert is_discussion_url("https://example.com/item?id=1") is False
        assert is_discussion_url(None) is False


class TestIsPdfUrl:
    def test_pdf_path(self) -> None:
        assert is_pdf_url("https://arxiv.org/pdf/2401.00001.pdf?download=1") is True

    def test_not_pdf(self) -> None:
        assert is_pdf_url("https://example.com/pdf") is False


class TestYoutube:
    @pytest.mark.parametrize(
        "url",
        [
            f"https://www.youtube.com/watch?v={VIDEO_ID}",
            f"https://youtube.com/watch?v={VIDEO_ID}&t=42s",
            f"https://m.youtube.com/watch?v={VIDEO_ID}",
            f"https://youtu.be/{VIDEO_ID}",
            f"https://www.youtube.com/embed/{VIDEO_ID}",
            f"https://www.youtube.com/shorts/{VIDEO_ID}",
        ],
    )
    def test_video_id(self, url: str) -> None:
        assert youtube_video_id(url) == VIDEO_ID

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=short",
            "https://www.youtube.com/channel/UC123",
            f"https://example.com/watch?v={VIDEO_ID}",
            None,
        ],
    )
    def test_no_video_id(self, url: str | None) -> None:
        assert youtube_video_id(url) is None

    def test_thumbnail(self) -> None:
        assert (
            youtube_thumbnail(f"https://youtu.be/{VIDEO_ID}")
            == f"https://i.ytimg.com/vi/{VIDEO_ID}/hqdefault.jpg"
        )
        assert youtube_thumbnail("https://example.com") is None
