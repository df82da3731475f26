"""Prometheus metric definitions for the relay."""

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
processor_requests_total = Counter(
    "processor_requests_total",
    "Calls made to the payment processor, by operation and response status",
    ["service", "operation", "status_code"],
)
processor_request_duration_seconds = Histogram(
    "processor_request_duration_seconds",
    "Payment processor call latency seconds",
    ["service", "operation"],
)
token_requests_total = Counter(
    "token_requests_total",
    "Access token acquisitions by outcome",
    ["service", "outcome"],
)
route_failures_total = Counter(
    "route_failures_total",
    "Route handler failures answered with a generic 500",
    ["service", "route"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
