"""Periodic summary of tracked hits."""

import time
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from log_sentinel.metrics import SUMMARIES

from .dispatcher import AlertDispatcher, trim
from .tracker import Hit, HitTracker

log = structlog.get_logger()

TOP_FINGERPRINTS = 5
SAMPLE_LENGTH = 160


def isoformat(ts: float) -> str:
    """Render an epoch timestamp as UTC ISO-8601 with a Z suffix."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def select_top(
    hits: list[tuple[str, Hit]], limit: int = TOP_FINGERPRINTS
) -> list[tuple[str, Hit]]:
    """Most frequent fingerprints first; the older issue wins a tie."""
    return sorted(hits, key=lambda item: (-item[1].count, item[1].first_seen))[:limit]


class SummaryAggregator:
    """Builds ranked digests from the hit tracker and sends them.

    Never mutates the tracker: counts keep growing across ticks.
    """

    def __init__(
        self,
        tracker: HitTracker,
        dispatcher: AlertDispatcher,
        clock: Callable[[], float] = time.time,
    ):
        self.tracker = tracker
        self.dispatcher = dispatcher
        self.clock = clock

    def render_block(self, source: str, top: list[tuple[str, Hit]]) -> str:
        lines = [
            f"• {hit.count}× since {isoformat(hit.first_seen)} - {trim(hit.sample, SAMPLE_LENGTH)}"
            for _, hit in top
        ]
        return f"*{source}*\n" + "\n".join(lines)

    def build(self, now: float) -> str | None:
        """Render the summary text, or None when nothing has been seen."""
        blocks = []
        for source in sorted(self.tracker.all_sources()):
            top = select_top(self.tracker.snapshot(source))
            if top:
                blocks.append(self.render_block(source, top))

        if not blocks:
            return None

        header = f"🧭 *Docker Log Sentinel summary* @ {isoformat(now)}"
        return header + "\n\n" + "\n\n".join(blocks)

    def tick(self) -> bool:
        """Emit one summary. Returns False on an empty tick."""
        text = self.build(self.clock())
        if text is None:
            log.debug("Summary skipped: no hits")
            return False

        SUMMARIES.inc()
        log.info("Sending summary", sources=len(self.tracker.all_sources()))
        self.dispatcher.send_summary(text)
        return True
