"""Rate limiter for alert deduplication."""

import threading


class RateLimiter:
    """Rate limiter to prevent alert spam.

    Tracks when each (container, fingerprint) pair last alerted and enforces
    a minimum window before allowing another alert.
    """

    def __init__(self):
        self.last_alert: dict[tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def can_alert(self, source: str, fingerprint: str, now: float, window: float) -> bool:
        """Check-and-set: decide whether an alert may fire now.

        Args:
            source: Container name
            fingerprint: Line fingerprint
            now: Current time (epoch seconds)
            window: Minimum seconds between alerts for this pair

        Returns:
            True if the alert is allowed (and recorded), False if suppressed
        """
        key = (source, fingerprint)
        with self._lock:
            last = self.last_alert.get(key)
            if last is not None and now - last < window:
                return False
            self.last_alert[key] = now
            return True

    def time_until_alert(
        self, source: str, fingerprint: str, now: float, window: float
    ) -> float | None:
        """Seconds remaining until this pair can alert again, or None if it can now."""
        with self._lock:
            last = self.last_alert.get((source, fingerprint))
        if last is None:
            return None
        remaining = window - (now - last)
        return remaining if remaining > 0 else None
