"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['outcome']  # success, seat_conflict, user_day_conflict, not_found, validation_error, error
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation engine latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

booking_cancellations = Counter(
    'booking_cancellations_total',
    'Bookings cancelled by their owner',
)

# Expiry sweeper metrics
bookings_expired = Counter(
    'bookings_expired_total',
    'Bookings transitioned from active to expired',
)

sweep_runs = Counter(
    'expiry_sweep_runs_total',
    'Expiry sweep invocations',
    ['trigger']  # request, schedule, manual
)

sweep_failures = Counter(
    'expiry_sweep_failures_total',
    'Per-booking expiry transitions that failed',
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint, mounted at /metrics in app.main."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

# Convenience functions for instrumentation
def record_reservation_attempt(outcome: str):
    """Record reservation attempt by outcome label."""
    reservation_attempts.labels(outcome=outcome).inc()

def record_sweep(trigger: str, expired: int):
    """Record one sweep run and the number of bookings it expired."""
    sweep_runs.labels(trigger=trigger).inc()
    if expired:
        bookings_expired.inc(expired)

def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
