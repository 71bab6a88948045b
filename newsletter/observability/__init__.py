"""Observability helpers (Prometheus metrics)."""

from newsletter.observability.metrics import (
    DISPATCH_LATENCY,
    record_callback,
    record_dispatch_failure,
    record_transition,
)

__all__ = [
    "DISPATCH_LATENCY",
    "record_callback",
    "record_dispatch_failure",
    "record_transition",
]
