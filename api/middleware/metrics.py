"""Prometheus metrics middleware for request monitoring.

Tracks:
- http_requests_total: Counter by method, path, status
- http_request_duration_seconds: Histogram by method, path
- http_requests_active: Gauge of currently processing requests

Each request also gets a request_id bound into the logging context.
"""

import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from newsletter.logging import bind_context, clear_context

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 120.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
)

# Paths excluded from request metrics
UNTRACKED_PATHS = ("/metrics",)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics and bind a request id for logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        bind_context(request_id=request_id)

        # Route pattern, not the actual path with IDs
        path = self._get_path_template(request)
        method = request.method

        ACTIVE_REQUESTS.inc()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            duration = time.perf_counter() - start_time
            ACTIVE_REQUESTS.dec()

            if path not in UNTRACKED_PATHS:
                REQUEST_COUNT.labels(method=method, path=path, status=str(status_code)).inc()
                REQUEST_LATENCY.labels(method=method, path=path).observe(duration)
            clear_context()

    def _get_path_template(self, request: Request) -> str:
        """Normalize /api/v1/generations/123 to /api/v1/generations/{generation_id}.

        Keeps label cardinality bounded.
        """
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return route.path
        return request.url.path


def get_metrics() -> bytes:
    """Prometheus metrics in text exposition format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
