"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Allocation metrics
allocation_attempts = Counter(
    'allocation_attempts_total',
    'Ticket assignment attempts',
    ['result']  # assigned, unavailable
)

ticket_revocations = Counter(
    'ticket_revocations_total',
    'Tickets returned to the available pool',
    ['reason']  # admin, release
)

tickets_generated = Counter(
    'tickets_generated_total',
    'Game tickets created from seats'
)

# Request ledger metrics
request_transitions = Counter(
    'ticket_request_transitions_total',
    'Ticket request state transitions',
    ['transition']  # created, updated, reactivated, withdrawn, approved
)

# Storage metrics
storage_errors = Counter(
    'storage_errors_total',
    'Persistence failures surfaced as StorageError',
    ['operation']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
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


def record_allocation(assigned: bool):
    result = "assigned" if assigned else "unavailable"
    allocation_attempts.labels(result=result).inc()


def record_revocation(reason: str, count: int = 1):
    """Record revocations. Reason: admin, release"""
    if count:
        ticket_revocations.labels(reason=reason).inc(count)


def record_tickets_generated(count: int):
    if count:
        tickets_generated.inc(count)


def record_request_transition(transition: str):
    request_transitions.labels(transition=transition).inc()


def record_storage_error(operation: str):
    storage_errors.labels(operation=operation).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
