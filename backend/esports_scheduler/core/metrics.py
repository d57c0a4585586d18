"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking engine metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking engine operations',
    ['operation', 'outcome']  # create/update/delete x success/conflict/blackout/validation/not_found/error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking transaction latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Notification metrics
notifications_published = Counter(
    'notifications_published_total',
    'Change events handed to the notifier',
    ['type']  # created, updated, deleted
)

notification_failures = Counter(
    'notification_failures_total',
    'Change events that could not be delivered'
)

active_subscribers = Gauge(
    'stream_active_subscribers',
    'Number of open reservation stream subscriptions'
)

# Retention metrics
reservations_purged = Counter(
    'reservations_purged_total',
    'Reservation rows removed by the retention purge'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(operation: str, outcome: str):
    """Record an engine operation. Outcome: success, conflict, blackout, validation, not_found, error"""
    booking_attempts.labels(operation=operation, outcome=outcome).inc()


def record_notification(event_type: str, delivered: bool):
    """Record a publish attempt."""
    if delivered:
        notifications_published.labels(type=event_type).inc()
    else:
        notification_failures.inc()
