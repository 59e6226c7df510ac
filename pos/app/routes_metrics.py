# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["path", "method"]
)
orders_created_total = Counter("orders_created_total", "Total orders created")
orders_created_total.inc(0)

order_number_collisions_total = Counter(
    "order_number_collisions_total", "Order numbers rejected as duplicates"
)
order_number_collisions_total.inc(0)

order_status_updates_total = Counter(
    "order_status_updates_total", "Total order status changes", ["status"]
)

ws_messages_total = Counter(
    "ws_messages_total", "Real-time messages sent to clients", ["type"]
)
ws_send_failures_total = Counter(
    "ws_send_failures_total", "Real-time sends dropped because of errors"
)
ws_send_failures_total.inc(0)

housekeeping_runs_total = Counter(
    "housekeeping_runs_total", "Completed housekeeping passes"
)
housekeeping_runs_total.inc(0)
housekeeping_failures_total = Counter(
    "housekeeping_failures_total", "Failed housekeeping passes"
)
housekeeping_failures_total.inc(0)

# Gauges
ws_connections = Gauge("ws_connections", "Open real-time connections", ["role"])
ws_connections.labels(role="kitchen").set(0)
ws_connections.labels(role="order").set(0)

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text format."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
