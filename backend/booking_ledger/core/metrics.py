"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
bookings_recorded = Counter(
    'bookings_recorded_total',
    'Booking rows written to the ledger',
    ['source']  # webhook, direct, checkout
)

booking_confirmations = Counter(
    'booking_confirmations_total',
    'Booking confirmation outcomes',
    ['result']  # confirmed, replayed, failed
)

# Capacity metrics
capacity_updates = Counter(
    'capacity_updates_total',
    'spots_remaining update outcomes',
    ['result']  # decremented, floored, conflict, failed
)

# Row store metrics
row_store_operations = Counter(
    'row_store_operations_total',
    'Row store calls',
    ['operation']  # read, update, append
)

row_store_latency = Histogram(
    'row_store_latency_seconds',
    'Row store call latency',
    ['operation'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Payment provider metrics
payment_provider_errors = Counter(
    'payment_provider_errors_total',
    'Payment provider call failures',
    ['operation']
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking(source: str):
    """Record a booking row write. Source: webhook, direct, checkout"""
    bookings_recorded.labels(source=source).inc()


def record_confirmation(result: str):
    booking_confirmations.labels(result=result).inc()


def record_capacity_update(result: str):
    """Result: decremented, floored, conflict, failed"""
    capacity_updates.labels(result=result).inc()


def record_row_store_operation(operation: str, duration: float):
    row_store_operations.labels(operation=operation).inc()
    row_store_latency.labels(operation=operation).observe(duration)


def record_provider_error(operation: str):
    payment_provider_errors.labels(operation=operation).inc()
