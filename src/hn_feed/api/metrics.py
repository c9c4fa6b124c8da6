"""Prometheus metrics for HN Feed.

All metrics are module-level singletons registered on the default
``REGISTRY``.  They are imported by the enrichment and stories modules as
well as the API layer.

Metrics defined here:

  cache_lookups_total{layer, outcome}
      Counter: cache reads per layer (story_ids, story, metadata, favicon,
      page) and outcome (hit, miss).

  story_enrichments_total{outcome}
      Counter: enrichment results: ok, error_record.

  page_fetches_total{outcome}
      Counter: linked page fetches: ok, failed, skipped.

  favicon_resolutions_total{source}
      Counter: which favicon cascade step produced the icon.

  upstream_requests_total{endpoint, outcome}
      Counter: upstream story API calls (listing, item) by outcome.

  http_requests_total{method, path, status}
      Counter: HTTP requests handled by the FastAPI application.

  http_request_duration_seconds{method, path}
      Histogram: HTTP request latency in seconds.

Usage::

    from hn_feed.api.metrics import cache_lookups_total
    cache_lookups_total.labels(layer="story", outcome="hit").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Cache metrics
# ---------------------------------------------------------------------------

cache_lookups_total: Counter = Counter(
    "cache_lookups_total",
    "Cache reads by layer and outcome.",
    labelnames=["layer", "outcome"],
)

# ---------------------------------------------------------------------------
# Enrichment metrics
# ---------------------------------------------------------------------------

story_enrichments_total: Counter = Counter(
    "story_enrichments_total",
    "Story enrichments by outcome.",
    labelnames=["outcome"],
)
"""Labels:
  outcome: ``ok`` or ``error_record`` (item could not be fetched)
"""

page_fetches_total: Counter = Counter(
    "page_fetches_total",
    "Linked page fetches by outcome.",
    labelnames=["outcome"],
)

favicon_resolutions_total: Counter = Counter(
    "favicon_resolutions_total",
    "Favicon resolutions by the cascade step that produced the icon.",
    labelnames=["source"],
)
"""Labels:
  source: cache, static_logo, favicon_ico, link_tag, icon_service, placeholder
"""

upstream_requests_total: Counter = Counter(
    "upstream_requests_total",
    "Upstream story API calls by endpoint and outcome.",
    labelnames=["endpoint", "outcome"],
)

# ---------------------------------------------------------------------------
# HTTP metrics (populated by middleware in main.py)
# ---------------------------------------------------------------------------

http_requests_total: Counter = Counter(
    "http_requests_total",
    "HTTP requests handled by the FastAPI application.",
    labelnames=["method", "path", "status"],
)

http_request_duration_seconds: Histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string).
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
