"""
OEE Dashboard - Application Metrics

Prometheus metrics for the OEE views served by the API.
"""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

registry = CollectorRegistry()

oee_view_requests_total = Counter(
    "oee_view_requests_total",
    "OEE view computations by outcome",
    ["view", "outcome"],
    registry=registry
)

oee_view_duration_seconds = Histogram(
    "oee_view_duration_seconds",
    "Time spent fetching records and computing an OEE view",
    ["view"],
    registry=registry
)


@contextmanager
def track_view(view: str) -> Iterator[None]:
    """Record duration and outcome of one view computation."""
    started = time.perf_counter()
    try:
        yield
    except Exception:
        oee_view_requests_total.labels(view=view, outcome="error").inc()
        raise
    else:
        oee_view_requests_total.labels(view=view, outcome="success").inc()
    finally:
        oee_view_duration_seconds.labels(view=view).observe(time.perf_counter() - started)


def render_latest() -> bytes:
    """Prometheus exposition of the application registry."""
    return generate_latest(registry)
