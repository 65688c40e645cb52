"""Prometheus metric definitions for the fee payment service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
webhooks_received_total = Counter(
    "webhooks_received_total",
    "Inbound gateway notifications by outcome",
    ["service", "outcome"],
)
webhook_processing_seconds = Histogram(
    "webhook_processing_seconds",
    "Time spent reconciling one notification",
    ["service"],
)
webhook_log_write_failures_total = Counter(
    "webhook_log_write_failures_total",
    "Audit log writes that failed",
    ["service", "stage"],
)
stale_notifications_total = Counter(
    "stale_notifications_total",
    "Notifications rejected by the monotonicity guard",
    ["service"],
)
orders_created_total = Counter("orders_created_total", "Orders created", ["service", "gateway"])
payment_initiations_total = Counter(
    "payment_initiations_total",
    "Outbound payment initiations by result",
    ["service", "result"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
