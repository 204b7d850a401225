"""Prometheus metrics for the sentinel.

Usage:
    from log_sentinel.metrics import start_metrics_server, ALERTS

    start_metrics_server(port=9108)
    ALERTS.labels(status="sent").inc()
"""

from log_sentinel.metrics.sentinel import (
    ALERTS,
    LINES_PROCESSED,
    STREAMS_CLOSED,
    SUMMARIES,
    TRACKED_FINGERPRINTS,
    WEBHOOK_DELIVERIES,
)
from log_sentinel.metrics.server import start_metrics_server

__all__ = [
    "start_metrics_server",
    "ALERTS",
    "LINES_PROCESSED",
    "STREAMS_CLOSED",
    "SUMMARIES",
    "TRACKED_FINGERPRINTS",
    "WEBHOOK_DELIVERIES",
]
