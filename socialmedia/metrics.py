"""
Prometheus metrics for the social media API.

http_requests_total and request_latency_seconds are labelled by method and
route template; operation_outcomes_total by operation and result. All three
live in the default prometheus-client registry.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# result: success, not_found, or the error kind (e.g. duplicate_username)
operation_outcomes_total = Counter(
    "operation_outcomes_total",
    "Total account and message operation outcomes",
    labelnames=["operation", "result"]
)

request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)


def record_http_request(method: str, route: str, status: int, latency_seconds: float) -> None:
    """Count a finished request and observe its latency under its route template."""
    route = route.partition("?")[0]
    http_requests_total.labels(method, route, str(status)).inc()
    request_latency_seconds.labels(method, route).observe(latency_seconds)


def record_operation_outcome(operation: str, result: str) -> None:
    operation_outcomes_total.labels(operation, result).inc()


def render_metrics() -> tuple[bytes, str]:
    """Current metrics in the text exposition format, with its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
