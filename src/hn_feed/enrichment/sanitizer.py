"""Text cleanup and rejection rules for scraped descriptions.

Raw page text is full of inline script and style remnants that survive tag
stripping.  ``clean`` removes markup and filters out lines that look like
code; ``is_gibberish`` rejects whole candidates that are binary dumps, CSS or
JSON.  Both rule sets are plain tuples of predicates so they can be extended
or swapped without touching the functions that apply them.

All functions here are pure: no I/O, deterministic, and they never raise.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable

from hn_feed.enrichment.config import ELLIPSIS, MIN_LINE_CHARS

Rule = Callable[[str], bool]

_URL_RE = re.compile(r"https?://\S*", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E]")
_WHITESPACE_RE = re.compile(r"\s+")
_CODE_LINE_RE = re.compile(r"^(?:const|let|var|function|class)\b")
_TRACKING_KEY_RE = re.compile(r"AUI_[A-Z0-9_]+")

# ---------------------------------------------------------------------------
# Line rules: a line matching any of these is dropped by ``clean``
# ---------------------------------------------------------------------------


def _is_short_line(line: str) -> bool:
    return len(line) < MIN_LINE_CHARS


def _is_code_line(line: str) -> bool:
    return bool(_CODE_LINE_RE.match(line)) or line[0] in "{}()[]"


def _is_comment_line(line: str) -> bool:
    return line.startswith(("//", "/*", "*", "<!--", "-->"))


def _is_json_object(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("{") and stripped.endswith("}") and ":" in stripped


LINE_REJECT_RULES: tuple[Rule, ...] = (
    _is_short_line,
    _is_code_line,
    _is_comment_line,
    _is_json_object,
)

# ---------------------------------------------------------------------------
# Gibberish rules: a candidate matching any of these is discarded
# ---------------------------------------------------------------------------


def _is_pdf_dump(text: str) -> bool:
    return text.startswith("%PDF")


def _has_css_declarations(text: str) -> bool:
    return "font-family:" in text or "text-anchor:" in text


def _has_tracking_keys(text: str) -> bool:
    return len(_TRACKING_KEY_RE.findall(text)) > 1


GIBBERISH_RULES: tuple[Rule, ...] = (
    _is_pdf_dump,
    _has_css_declarations,
    _is_json_object,
    _has_tracking_keys,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _strip_markup(text: str) -> str:
    # Tags first: "http<b>s://" only becomes a URL once the tag is gone.
    return _URL_RE.sub("", _TAG_RE.sub("", text))


def clean(text: str | None, line_rules: Iterable[Rule] = LINE_REJECT_RULES) -> str:
    """Strip URLs, tags and non-printable characters and drop code-like lines.

    Surviving lines are joined with single spaces.

    Args:
        text: Raw extracted text.  ``None`` is treated as empty.
        line_rules: Predicates; a stripped line matching any of them is dropped.

    Returns:
        Printable-ASCII text with no HTML tag and no ``http(s)://`` URL.
    """
    if not text:
        return ""
    rules = tuple(line_rules)

    text = _strip_markup(text)
    kept: list[str] = []
    for line in text.splitlines():
        line = _NON_PRINTABLE_RE.sub("", _WHITESPACE_RE.sub(" ", line)).strip()
        if not line or any(rule(line) for rule in rules):
            continue
        kept.append(line)
    text = " ".join(kept)

    # Removing one construct can splice another together ("<ahttp://x >").
    while True:
        stripped = _WHITESPACE_RE.sub(" ", _strip_markup(text)).strip()
        if stripped == text:
            return text
        text = stripped


def truncate(text: str, max_len: int) -> str:
    """Cut ``text`` at ``max_len`` characters and append an ellipsis if cut.

    Does not look for word boundaries.
    """
    if len(text) <= max_len:
        return text
    return text[: max(max_len, 0)] + ELLIPSIS


def is_gibberish(text: str, rules: Iterable[Rule] = GIBBERISH_RULES) -> bool:
    """Return ``True`` if ``text`` is unusable as a description.

    Flags PDF binary dumps, raw CSS declarations, JSON object literals and
    text carrying more than one internal ``AUI_*`` tracking key.
    """
    return any(rule(text) for rule in rules)
