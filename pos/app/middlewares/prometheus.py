"""Prometheus middleware for HTTP request metrics."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import http_request_duration_seconds, http_requests_total


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests and time them, keyed by route template.

    Templates (``/api/orders/{order_id}/status``) keep label cardinality
    bounded; unmatched paths fall back to the raw URL path.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        route = request.scope.get("route")
        path = getattr(route, "path", None) or request.url.path
        http_requests_total.labels(
            path=path,
            method=request.method,
            status=str(response.status_code),
        ).inc()
        http_request_duration_seconds.labels(path=path, method=request.method).observe(
            time.perf_counter() - start
        )
        return response
