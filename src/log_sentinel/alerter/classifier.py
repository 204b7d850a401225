"""Error/ignore pattern classifier for log lines."""

import re
from enum import Enum

from log_sentinel.errors import ConfigError

# Docker frame header and/or timestamp at the start of a line
_PREFIX_RE = re.compile(
    r"^.{0,30}?[0-9]{4}-[0-9]{2}-[0-9]{2}[T ][0-9]{2}:[0-9]{2}:[0-9]{2}"
    r"(?:[.,][0-9]+)?(?:Z|[+-][0-9]{2}:?[0-9]{2})?\s*"
)


class LineClass(Enum):
    """Result of classifying a log line."""

    IGNORED = "ignored"  # Matched the ignore pattern
    NOT_MATCHING = "not_matching"  # Not error-like
    QUALIFYING = "qualifying"  # Error-like, should be tracked


def compile_pattern(pattern: str | None) -> re.Pattern | None:
    """Compile a case-insensitive pattern, or return None for an empty one.

    Raises:
        ConfigError: If the pattern is not a valid regular expression
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ConfigError(f"Invalid pattern {pattern!r}: {e}") from e


def classify(
    line: str,
    error_pattern: re.Pattern,
    ignore_pattern: re.Pattern | None = None,
) -> LineClass:
    """Classify a log line.

    The ignore pattern wins over the error pattern when both match.
    """
    if ignore_pattern is not None and ignore_pattern.search(line):
        return LineClass.IGNORED
    if not error_pattern.search(line):
        return LineClass.NOT_MATCHING
    return LineClass.QUALIFYING


def strip_prefix(line: str) -> str:
    """Remove a leading frame/timestamp prefix and surrounding whitespace."""
    return _PREFIX_RE.sub("", line, count=1).strip()
