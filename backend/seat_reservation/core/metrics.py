"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Hold metrics
hold_attempts = Counter(
    'hold_attempts_total',
    'Total hold acquisition attempts',
    ['result']  # acquired, partial, conflict
)

hold_conflicts = Counter(
    'hold_conflict_seats_total',
    'Seats reported as conflicts to a requester',
    ['stage']  # precheck, verify
)

hold_releases = Counter(
    'hold_releases_total',
    'Seats released explicitly by their holder'
)

hold_latency = Histogram(
    'hold_acquire_latency_seconds',
    'Hold acquisition latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking finalization attempts',
    ['status']  # success, partial, failed
)

booking_retries = Counter(
    'booking_insert_retries_total',
    'Booking insert retries due to seat uniqueness races'
)

booking_latency = Histogram(
    'booking_finalize_latency_seconds',
    'Booking finalization latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Reconciler metrics
holds_reconciled = Counter(
    'holds_reconciled_total',
    'Expired or released holds purged from the store',
    ['trigger']  # read, sweep
)

# Store metrics
store_errors = Counter(
    'hold_store_errors_total',
    'Storage failures surfaced by a store backend',
    ['backend']  # sql, redis
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_hold_attempt(requested: int, conflicts: int, held: int):
    """Record hold outcome: acquired (no conflicts), partial, or conflict (nothing held)."""
    if conflicts == 0:
        result = "acquired"
    elif held > 0:
        result = "partial"
    else:
        result = "conflict"
    hold_attempts.labels(result=result).inc()


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, partial, failed"""
    booking_attempts.labels(status=status).inc()


def record_reconciled(trigger: str, count: int):
    if count:
        holds_reconciled.labels(trigger=trigger).inc(count)
