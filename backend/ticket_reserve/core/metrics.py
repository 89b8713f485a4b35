"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation submissions',
    ['status']  # success, capacity_exceeded, conflict, rejected, error
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation transaction latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

reserved_seats_delta = Counter(
    'reserved_seats_delta_total',
    'Seats granted (positive deltas) and released (negative deltas)',
    ['direction']  # granted, released
)

cancellations = Counter(
    'reservation_cancellations_total',
    'Reservation cancellations',
    ['result']  # cancelled, noop, error
)

survey_submissions = Counter(
    'survey_submissions_total',
    'Survey submissions',
    ['mode']  # upsert, anonymous
)

# Transaction metrics
transaction_retries = Counter(
    'transaction_retry_attempts_total',
    'Transaction bodies re-run after a write conflict',
    ['operation']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(status: str):
    """Record reservation attempt. Status: success, capacity_exceeded, conflict, rejected, error"""
    reservation_attempts.labels(status=status).inc()


def record_seat_delta(delta: int):
    if delta > 0:
        reserved_seats_delta.labels(direction="granted").inc(delta)
    elif delta < 0:
        reserved_seats_delta.labels(direction="released").inc(-delta)


def record_cancellation(result: str):
    cancellations.labels(result=result).inc()


def record_survey_submission(anonymous: bool):
    survey_submissions.labels(mode="anonymous" if anonymous else "upsert").inc()


def record_transaction_retry(operation: str):
    transaction_retries.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
