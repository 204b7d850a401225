"""Log line normalization and fingerprinting for deduplication."""

import hashlib
import re

# Longest normalized prefix that participates in the fingerprint
MAX_NORMALIZED_LENGTH = 4000

# Applied in this order: UUIDs and timestamps must be masked before the
# generic number pattern eats their digit runs.
_MASKS: list[tuple[re.Pattern, str]] = [
    (
        re.compile(
            r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
            re.IGNORECASE,
        ),
        "<uuid>",
    ),
    (re.compile(r"0x[0-9a-f]+", re.IGNORECASE), "<hex>"),
    (re.compile(r"\b[0-9]{1,3}(?:\.[0-9]{1,3}){3}\b"), "<ip>"),
    (
        re.compile(
            r"\b[0-9]{4}-[0-9]{2}-[0-9]{2}[T\s][0-9]{2}:[0-9]{2}:[0-9]{2}(?:\.[0-9]+)?Z?\b",
            re.IGNORECASE,
        ),
        "<ts>",
    ),
    (re.compile(r"\b[0-9]+\b"), "<num>"),
]


def normalize_line(line: str) -> str:
    """Mask volatile tokens (uuids, hex, IPs, timestamps, numbers) in a log line.

    The result is truncated to MAX_NORMALIZED_LENGTH characters.
    """
    for pattern, placeholder in _MASKS:
        line = pattern.sub(placeholder, line)
    return line[:MAX_NORMALIZED_LENGTH]


def fingerprint(line: str) -> str:
    """Return a stable SHA-1 hex digest identifying the line's normalized content."""
    return hashlib.sha1(normalize_line(line).encode("utf-8")).hexdigest()
