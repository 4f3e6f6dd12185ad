"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'reservation_booking_attempts_total',
    'Total booking creation attempts',
    ['kind', 'outcome']  # outcome: created, or the error class name
)

booking_latency = Histogram(
    'reservation_booking_latency_seconds',
    'Booking creation latency (lock wait included)',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

lifecycle_transitions = Counter(
    'reservation_lifecycle_transitions_total',
    'Lifecycle transition attempts',
    ['kind', 'action', 'result']  # result: applied, rejected
)

# Availability metrics
slot_queries = Counter(
    'reservation_slot_queries_total',
    'Available-slot listings computed',
    ['kind']
)

# Locking metrics
lock_wait = Histogram(
    'reservation_lock_wait_seconds',
    'Time spent waiting for a per-(resource, date) booking lock',
    ['strategy'],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

lock_timeouts = Counter(
    'reservation_lock_timeouts_total',
    'Booking lock acquisitions that gave up'
)

# Cache metrics
cache_operations = Counter(
    'reservation_cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'reservation_redis_connection_errors_total',
    'Redis connection errors'
)

redis_circuit_breaker_open = Gauge(
    'reservation_redis_circuit_breaker_open',
    'Redis lock fallback state (1=falling back to local locks, 0=redis)'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(kind: str, outcome: str):
    """Record booking attempt. Outcome: created, or an error class name."""
    booking_attempts.labels(kind=kind, outcome=outcome).inc()


def record_transition(kind: str, action: str, applied: bool):
    result = "applied" if applied else "rejected"
    lifecycle_transitions.labels(kind=kind, action=action, result=result).inc()


def record_slot_query(kind: str):
    slot_queries.labels(kind=kind).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
