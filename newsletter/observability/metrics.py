"""Prometheus metrics for the generation lifecycle.

Tracks:
- generation_transitions_total: Counter by target status
- generation_callbacks_total: Counter by callback result
- generation_dispatch_failures_total: Counter by failure reason
- generation_dispatch_seconds: Histogram of dispatch round-trip time
"""

from prometheus_client import Counter, Histogram

GENERATION_TRANSITIONS = Counter(
    "generation_transitions_total",
    "Generation status transitions",
    ["to_status"],
)

CALLBACK_RESULTS = Counter(
    "generation_callbacks_total",
    "Completion callbacks received",
    ["result"],
)

DISPATCH_FAILURES = Counter(
    "generation_dispatch_failures_total",
    "Failed dispatches to the generation workflow",
    ["reason"],
)

DISPATCH_LATENCY = Histogram(
    "generation_dispatch_seconds",
    "Dispatch request latency in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)


def record_transition(status: str) -> None:
    GENERATION_TRANSITIONS.labels(to_status=status).inc()


def record_callback(result: str) -> None:
    CALLBACK_RESULTS.labels(result=result).inc()


def record_dispatch_failure(reason: str) -> None:
    DISPATCH_FAILURES.labels(reason=reason).inc()
