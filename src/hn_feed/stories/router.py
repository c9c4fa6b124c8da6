"""FastAPI router for the enriched story feed.

Routes:
    GET /stories?type={category}&page={n}  enriched stories for one page

``type`` accepts short names (``top``) and upstream listing names
(``topstories``); anything else means ``top``.  ``page`` defaults to 1 and
invalid values fall back to 1 instead of failing validation.

A page past the end of the listing is an empty array.  Only an unreachable
upstream listing produces a ``500`` with ``{"error": ...}``.
"""

from typing import Annotated, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from hn_feed.api.dependencies import get_pager
from hn_feed.api.limiter import limiter
from hn_feed.config.defaults import STORIES_CACHE_CONTROL
from hn_feed.core.exceptions import UpstreamUnavailableError
from hn_feed.stories.client import normalize_category
from hn_feed.stories.pager import ListingPager

logger = structlog.get_logger(__name__)

router = APIRouter()

_ERROR_BODY = {"error": "Failed to fetch stories"}


def parse_page(value: str | None) -> int:
    """Positive page number from a query value; anything else is page 1."""
    try:
        page = int(value) if value is not None else 1
    except ValueError:
        return 1
    return page if page >= 1 else 1


@router.get("/stories")
@limiter.limit("60/minute")
async def list_stories(
    request: Request,  # noqa: ARG001
    pager: Annotated[ListingPager, Depends(get_pager)],
    type: Annotated[Optional[str], Query()] = None,  # noqa: A002
    page: Annotated[Optional[str], Query()] = None,
) -> JSONResponse:
    """Return one page of enriched stories for a category.

    Args:
        request: The incoming request (used by the rate limiter).
        pager: Injected listing pager.
        type: Category name; defaults to ``top``.
        page: 1-based page number; defaults to 1.

    Returns:
        JSON array of story records, or ``{"error": ...}`` with status 500
        when the upstream listing is unavailable.
    """
    category = normalize_category(type)
    page_number = parse_page(page)

    try:
        stories = await pager.get_page(category, page_number)
    except UpstreamUnavailableError as exc:
        logger.error("stories_listing_unavailable", category=category, reason=exc.reason)
        return JSONResponse(_ERROR_BODY, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except Exception as exc:
        logger.error("stories_page_failed", category=category, page=page_number, exc_info=exc)
        return JSONResponse(_ERROR_BODY, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info("stories_page_served", category=category, page=page_number, count=len(stories))
    return JSONResponse(
        jsonable_encoder(stories),
        headers={"Cache-Control": STORIES_CACHE_CONTROL},
    )
