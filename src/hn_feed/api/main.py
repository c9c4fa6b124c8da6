"""FastAPI application factory and entry point.

Creates the application instance, registers middleware, mounts the story
and health routers, and owns the lifetime of the shared HTTP client and
cache store.

Usage::

    # Development server (from project root)
    uvicorn hn_feed.api.main:app --reload

    # Production
    uvicorn hn_feed.api.main:app --host 0.0.0.0 --workers 4
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hn_feed import __version__
from hn_feed.api.dependencies import build_services
from hn_feed.api.limiter import limiter
from hn_feed.api.metrics import (
    get_metrics_response,
    http_request_duration_seconds,
    http_requests_total,
)
from hn_feed.config.settings import get_settings
from hn_feed.core.logging_config import configure_logging, request_id_var

# ---------------------------------------------------------------------------
# Logging configuration, applied once at module import time so that log
# records emitted during app construction are captured correctly.
# The log level is re-applied inside create_app() after settings are loaded.
# ---------------------------------------------------------------------------

configure_logging("INFO")

logger = structlog.get_logger(__name__)


def _route_path(request: Request) -> str:
    """Route template for metric labels, so ids in paths do not explode cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    call ``create_app()`` with a patched settings environment.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()

    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Hacker News listings enriched with page images and descriptions.",
        version=__version__,
        debug=settings.debug,
        redirect_slashes=False,
    )

    # ---- Middleware --------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # ---- Request logging middleware ----------------------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration.

        Binds a unique ``request_id`` to the structlog context so that the
        log lines of every enrichment spawned by the request correlate.
        """
        request_id = str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed = time.perf_counter() - start
            status_code = getattr(response, "status_code", 500)
            path = _route_path(request)
            http_requests_total.labels(
                method=request.method, path=path, status=str(status_code)
            ).inc()
            http_request_duration_seconds.labels(method=request.method, path=path).observe(elapsed)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn(
                "request_complete",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Routers ----------------------------------------------------------

    from hn_feed.api.routes import health as health_routes  # noqa: PLC0415
    from hn_feed.stories.router import router as stories_router  # noqa: PLC0415

    application.include_router(stories_router, tags=["stories"])
    application.include_router(health_routes.router)

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        """Create the shared HTTP client, cache store and enrichment pipeline."""
        application.state.services = build_services(settings)
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            cache_backend=settings.cache_backend,
            page_size=settings.page_size,
            enrich_batch_size=settings.enrich_batch_size,
            log_level=settings.log_level,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Close outbound connections."""
        services = getattr(application.state, "services", None)
        if services is not None:
            await services.aclose()
        logger.info("application_shutdown")

    # ---- System endpoints ---------------------------------------------------

    @application.get("/health", tags=["system"])
    async def health() -> JSONResponse:
        """Minimal liveness status with no I/O."""
        return JSONResponse({"status": "ok"})

    if settings.metrics_enabled:

        @application.get("/metrics", tags=["system"], include_in_schema=False)
        async def metrics() -> Response:
            """Prometheus exposition."""
            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance.

This is the ASGI callable passed to Uvicorn.
"""
