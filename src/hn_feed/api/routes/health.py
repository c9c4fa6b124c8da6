"""Health check route handlers.

``GET /api/health``
    Reports whether the cache store answers ``PING``.  Always returns HTTP
    200; ``status`` is ``"ok"`` or ``"degraded"``.  A degraded cache does not
    stop the feed from working, it only makes it slower.

The process-level liveness probe (``GET /health``) lives in ``main.py``.
These endpoints are diagnostic and must never raise HTTP 5xx errors.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hn_feed.api.dependencies import get_cache
from hn_feed.core.cache import CacheStore
from hn_feed.core.exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


async def _check_cache(cache: CacheStore) -> str:
    """``"ok"`` if the store answers ``PING``, ``"error"`` otherwise."""
    try:
        await cache.ping()
    except CacheUnavailableError:
        logger.warning("Health check: cache store unreachable")
        return "error"
    return "ok"


@router.get("/api/health")
async def api_health(cache: Annotated[CacheStore, Depends(get_cache)]) -> JSONResponse:
    """Return cache connectivity.

    Returns:
        JSON ``{"status": "ok" | "degraded", "cache": "ok" | "error"}``.
    """
    cache_status = await _check_cache(cache)
    overall = "ok" if cache_status == "ok" else "degraded"
    return JSONResponse({"status": overall, "cache": cache_status})
