"""Structured logging for the sentinel.

Diagnostics go to stderr through structlog, bridged into stdlib logging so the
docker and httpx loggers share the format. JSON when stderr is not a terminal,
colored console output otherwise. The plain-text alert sink is not routed
through here.
"""

import logging
import sys
from typing import cast

import structlog

from log_sentinel import __version__

# Third-party loggers that are noisy below WARNING
_QUIET_LOGGERS = ("urllib3", "docker", "httpx", "httpcore")


def configure_logging(level: str = "INFO", json_logs: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name ('DEBUG', 'INFO', ...)
        json_logs: Force JSON (True) or console (False); None picks by TTY
    """
    log_level = getattr(logging, level.upper())
    if json_logs is None:
        json_logs = not sys.stderr.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared_processors, processor=renderer)
    )

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.contextvars.bind_contextvars(service="log-sentinel", version=__version__)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance."""
    return cast(structlog.BoundLogger, structlog.get_logger(name))
