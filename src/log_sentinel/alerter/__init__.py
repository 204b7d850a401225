"""Log alert pipeline for Docker containers.

Provides line normalization, fingerprinting, hit tracking, rate limiting,
periodic summaries and Slack/Lark webhook alerts.
"""

from .classifier import LineClass, classify, compile_pattern, strip_prefix
from .daemon import SentinelDaemon, build_daemon, resolve_targets, run_sentinel
from .dispatcher import AlertDispatcher, LocalSink, trim
from .normalize import fingerprint, normalize_line
from .rate_limiter import RateLimiter
from .sources import DockerLogSource, Source, StreamClass, iter_lines
from .summary import SummaryAggregator, select_top
from .tracker import Hit, HitTracker
from .webhook import WebhookClient, WebhookFamily, resolve_family

__all__ = [
    # Daemon
    "SentinelDaemon",
    "build_daemon",
    "resolve_targets",
    "run_sentinel",
    # Pipeline
    "normalize_line",
    "fingerprint",
    "classify",
    "compile_pattern",
    "strip_prefix",
    "LineClass",
    "HitTracker",
    "Hit",
    "RateLimiter",
    "SummaryAggregator",
    "select_top",
    # Output
    "AlertDispatcher",
    "LocalSink",
    "trim",
    "WebhookClient",
    "WebhookFamily",
    "resolve_family",
    # Docker
    "DockerLogSource",
    "Source",
    "StreamClass",
    "iter_lines",
]
