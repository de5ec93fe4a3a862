"""Prometheus metrics for the application."""

import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# --- Metrics ---

APP_INFO = Info("brandpulse", "Brandpulse build info")
APP_INFO.info({"version": "1.0.0"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

PROVIDER_CALLS = Counter(
    "provider_calls_total",
    "LLM provider calls by outcome",
    ["provider", "status"],
)

PROVIDER_DURATION = Histogram(
    "provider_call_duration_seconds",
    "LLM provider call duration in seconds (including retries)",
    ["provider"],
    buckets=[0.5, 1, 2.5, 5, 10, 15, 20, 30, 60],
)

PIPELINE_EXECUTIONS = Counter(
    "pipeline_executions_total",
    "Prompt executions by provider and final status",
    ["provider", "status"],
)

EXTRACTION_FALLBACKS = Counter(
    "extraction_fallbacks_total",
    "Brand extraction fell back to pattern matching",
    ["reason"],
)

CATALOG_CHANGES = Counter(
    "catalog_changes_total",
    "Brand catalog rows changed by the sync sweep or operator actions",
    ["action"],
)


# --- Middleware ---

# Normalize dynamic path segments to reduce cardinality
_PATH_PREFIXES = ("/api/v1/organizations/", "/api/v1/prompts/")


def _normalize_path(path: str) -> str:
    """Replace IDs in paths with {id} to avoid high cardinality."""
    for prefix in _PATH_PREFIXES:
        if path.startswith(prefix):
            rest = path[len(prefix) :]
            parts = rest.split("/", 1)
            if parts[0]:
                tail = f"/{parts[1]}" if len(parts) > 1 else ""
                return f"{prefix}{{id}}{tail}"
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Request count and latency, labelled by route template."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            path = getattr(route, "path", None) or _normalize_path(request.url.path)
            REQUEST_COUNT.labels(method=request.method, path=path, status=status).inc()
            REQUEST_DURATION.labels(method=request.method, path=path).observe(time.perf_counter() - start)


def metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
