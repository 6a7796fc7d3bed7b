"""
Prometheus metrics for monitoring
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
import time
from functools import wraps

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# ==================== Order Metrics ====================

orders_created_total = Counter(
    'orders_created_total',
    'Total pending orders created'
)

orders_paid_total = Counter(
    'orders_paid_total',
    'Total orders paid'
)

orders_failed_total = Counter(
    'orders_failed_total',
    'Total orders failed at payment return',
    ['reason']
)

orders_cancelled_total = Counter(
    'orders_cancelled_total',
    'Total orders cancelled',
    ['source']  # customer, expiry
)

checkout_duration_seconds = Histogram(
    'checkout_duration_seconds',
    'Time to create a pending order',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

payment_return_duration_seconds = Histogram(
    'payment_return_duration_seconds',
    'Time to settle a gateway payment return',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

# ==================== Ticket Metrics ====================

tickets_issued_total = Counter(
    'tickets_issued_total',
    'Total tickets issued'
)

ticket_inspections_total = Counter(
    'ticket_inspections_total',
    'Ticket inspections by outcome',
    ['status']  # valid, invalid, duplicate, offline
)

# ==================== Account Metrics ====================

bans_lifted_total = Counter(
    'bans_lifted_total',
    'Total expired bans cleared by the worker'
)

# ==================== WebSocket Metrics ====================

websocket_connections_total = Gauge(
    'websocket_connections_total',
    'Current WebSocket connections',
    ['event_id']
)

websocket_messages_sent_total = Counter(
    'websocket_messages_sent_total',
    'Total WebSocket messages sent',
    ['message_type']
)

# ==================== Helper Functions ====================


def track_time(metric: Histogram):
    """Decorator to track execution time"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                metric.observe(time.time() - start_time)
        return wrapper
    return decorator


def get_metrics():
    """Get current metrics in Prometheus format"""
    return generate_latest(), CONTENT_TYPE_LATEST
