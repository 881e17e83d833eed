"""
Prometheus metrics for Recetario Service.

Tracks HTTP traffic, search strategy usage, fallback activations,
favorite toggles and storage uploads.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "recetario_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "recetario_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Search metrics
recipe_searches_total = Counter(
    "recetario_searches_total", "Total recipe searches", ["source"]
)

recipe_search_duration_seconds = Histogram(
    "recetario_search_duration_seconds",
    "Recipe search duration in seconds",
    ["source"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

recipe_search_results = Histogram(
    "recetario_search_results",
    "Number of recipes returned per search",
    ["source"],
    buckets=(0, 1, 5, 10, 25, 50, 100, 200),
)

search_fallback_total = Counter(
    "recetario_search_fallback_total",
    "Times the client-side matcher replaced the server search",
    ["reason"],
)

# Favorites and storage
favorites_toggled_total = Counter(
    "recetario_favorites_toggled_total", "Favorite changes", ["action"]
)

storage_uploads_total = Counter(
    "recetario_storage_uploads_total", "Storage uploads", ["bucket", "status"]
)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_search(source: str, duration: float, result_count: int):
    """Track a completed search by the strategy that answered it."""
    recipe_searches_total.labels(source=source).inc()
    recipe_search_duration_seconds.labels(source=source).observe(duration)
    recipe_search_results.labels(source=source).observe(result_count)


def track_search_fallback(reason: str):
    """Track a fallback to local matching ("error" or "empty")."""
    search_fallback_total.labels(reason=reason).inc()


def track_favorite(added: bool):
    favorites_toggled_total.labels(action="add" if added else "remove").inc()


def track_upload(bucket: str, success: bool):
    status = "success" if success else "failure"
    storage_uploads_total.labels(bucket=bucket, status=status).inc()


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
