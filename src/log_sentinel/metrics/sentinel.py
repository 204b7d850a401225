"""Standard Prometheus metrics for the sentinel.

All metrics use the 'sentinel_' prefix for consistency.
"""

from prometheus_client import Counter, Gauge

LINES_PROCESSED = Counter(
    "sentinel_lines_total",
    "Log lines seen by the pipeline",
    ["result"],  # result: blank, ignored, not_matching, qualifying
)

ALERTS = Counter(
    "sentinel_alerts_total",
    "Immediate alert decisions",
    ["status"],  # status: sent, suppressed
)

WEBHOOK_DELIVERIES = Counter(
    "sentinel_webhook_deliveries_total",
    "Webhook POST attempts",
    ["family", "status"],  # status: success, http_error, request_error
)

SUMMARIES = Counter(
    "sentinel_summaries_total",
    "Summary digests emitted",
)

STREAMS_CLOSED = Counter(
    "sentinel_streams_closed_total",
    "Container log streams that ended",
    ["stream"],
)

TRACKED_FINGERPRINTS = Gauge(
    "sentinel_tracked_fingerprints",
    "Distinct (container, fingerprint) pairs held in memory",
)
