"""
Prometheus metrics
"""

from prometheus_client import Counter, Histogram, REGISTRY


def _counter(name: str, documentation: str, labels: list) -> Counter:
    # Re-imports (tests, reload) must not register twice
    try:
        return Counter(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labels: list) -> Histogram:
    try:
        return Histogram(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _counter(
    "app_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = _histogram(
    "app_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)
MEMBERSHIP_OPERATIONS = _counter(
    "move_membership_operations_total",
    "Move mutations by operation and outcome",
    ["operation", "outcome"]
)
WAITLIST_PROMOTIONS = _counter(
    "move_waitlist_promotions_total",
    "Waitlisted users promoted into a freed slot",
    []
)


def record_operation(operation: str, outcome: str) -> None:
    MEMBERSHIP_OPERATIONS.labels(operation=operation, outcome=outcome).inc()
