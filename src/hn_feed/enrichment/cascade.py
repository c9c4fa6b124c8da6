"""Ordered fallback evaluation for extractor functions.

An extractor takes a single context argument and returns a string (possibly
empty) or ``None``.  :func:`first_present` tries them in order and returns
the first non-blank result; an extractor that raises counts as "nothing
found" and the next one is tried.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

ContextT = TypeVar("ContextT")

Extractor = Callable[[ContextT], "str | None"]


def first_present(
    extractors: Iterable[Extractor[ContextT]],
    context: ContextT,
) -> str:
    """Return the first non-blank value produced by ``extractors``.

    Args:
        extractors: Callables evaluated in order.
        context: Passed unchanged to each extractor.

    Returns:
        The stripped value, or ``""`` if every extractor came up empty.
    """
    for extractor in extractors:
        try:
            value = extractor(context)
        except Exception as exc:  # noqa: BLE001
            logger.debug(
                "enrichment: extractor %s failed: %s",
                getattr(extractor, "__name__", extractor),
                exc,
            )
            continue
        if value and value.strip():
            return value.strip()
    return ""
