"""Per-(container, fingerprint) hit tracking."""

import threading
from dataclasses import dataclass, replace


@dataclass
class Hit:
    """Aggregate state for one fingerprint seen in one container."""

    first_seen: float
    last_seen: float
    count: int
    sample: str  # First line seen, never overwritten


class HitTracker:
    """Thread-safe map of container -> fingerprint -> Hit.

    Entries live until the process exits; nothing is evicted.
    """

    def __init__(self):
        self._hits: dict[str, dict[str, Hit]] = {}
        self._lock = threading.Lock()

    def mark_hit(self, source: str, fingerprint: str, sample: str, now: float) -> Hit:
        """Record one qualifying observation and return a copy of the updated Hit."""
        with self._lock:
            bucket = self._hits.setdefault(source, {})
            hit = bucket.get(fingerprint)
            if hit is None:
                hit = Hit(first_seen=now, last_seen=now, count=1, sample=sample)
                bucket[fingerprint] = hit
            else:
                hit.count += 1
                hit.last_seen = now
            return replace(hit)

    def snapshot(self, source: str) -> list[tuple[str, Hit]]:
        """Copies of the hits for a container, in first-seen order."""
        with self._lock:
            bucket = self._hits.get(source, {})
            return [(fp, replace(hit)) for fp, hit in bucket.items()]

    def all_sources(self) -> set[str]:
        """Names of containers with at least one hit."""
        with self._lock:
            return {source for source, bucket in self._hits.items() if bucket}

    def fingerprint_count(self) -> int:
        """Total tracked (container, fingerprint) pairs."""
        with self._lock:
            return sum(len(bucket) for bucket in self._hits.values())
