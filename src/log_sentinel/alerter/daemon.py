"""Sentinel daemon: tails container logs and drives the alert pipeline."""

import re
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Protocol

import schedule
import structlog

from log_sentinel.config import Config, parse_since
from log_sentinel.errors import ConfigError, SourceOpenError
from log_sentinel.metrics import (
    ALERTS,
    LINES_PROCESSED,
    STREAMS_CLOSED,
    TRACKED_FINGERPRINTS,
    start_metrics_server,
)

from .classifier import LineClass, classify, compile_pattern, strip_prefix
from .dispatcher import AlertDispatcher, LocalSink
from .normalize import fingerprint
from .rate_limiter import RateLimiter
from .sources import DockerLogSource, Source, StreamClass
from .summary import SummaryAggregator
from .tracker import HitTracker
from .webhook import WebhookClient

log = structlog.get_logger()


class LogSource(Protocol):
    """What the daemon needs from a container runtime."""

    def list_running_sources(self) -> list[Source]: ...

    def open_line_sequences(
        self, source_id: str, since: int | None = None
    ) -> dict[StreamClass, Iterator[str]]: ...


def resolve_targets(
    running: Iterable[Source], watch_all: bool, names: Iterable[str] | None
) -> list[Source]:
    """Pick the containers to watch.

    Raises:
        ConfigError: If neither selection is given or no names match
    """
    running = list(running)
    if watch_all:
        return running

    wanted = [name.strip() for name in names or [] if name.strip()]
    if not wanted:
        raise ConfigError("Specify --all or --containers <name1,name2>")

    targets = [source for source in running if source.name in wanted]
    if not targets:
        raise ConfigError(f"No matching running containers for: {', '.join(wanted)}")
    return targets


class SentinelDaemon:
    """Fans in container log streams and feeds the shared hit/alert state."""

    def __init__(
        self,
        log_source: LogSource,
        targets: list[Source],
        error_pattern: re.Pattern,
        ignore_pattern: re.Pattern | None = None,
        dispatcher: AlertDispatcher | None = None,
        rate_limit: float = 120,
        summarize_every: int = 300,
        since: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the daemon.

        Args:
            log_source: Container runtime collaborator
            targets: Containers to follow
            error_pattern: Compiled, case-insensitive error pattern
            ignore_pattern: Compiled ignore pattern, or None to disable
            dispatcher: Alert output (default: console only)
            rate_limit: Minimum seconds between identical alerts per container
            summarize_every: Seconds between summary digests
            since: Only read logs newer than this epoch timestamp
            clock: Time source, epoch seconds
        """
        self.log_source = log_source
        self.targets = targets
        self.error_pattern = error_pattern
        self.ignore_pattern = ignore_pattern
        self.dispatcher = dispatcher or AlertDispatcher()
        self.rate_limit = rate_limit
        self.summarize_every = summarize_every
        self.since = since
        self.clock = clock

        self.tracker = HitTracker()
        self.rate_limiter = RateLimiter()
        self.summary = SummaryAggregator(self.tracker, self.dispatcher, clock=clock)
        self.scheduler = schedule.Scheduler()

        self._threads: list[threading.Thread] = []
        self._stop_event = threading.Event()
        self._open_streams = 0
        self._streams_lock = threading.Lock()

    @property
    def sink(self) -> LocalSink:
        return self.dispatcher.sink

    def banner(self) -> str:
        ignore = self.ignore_pattern.pattern if self.ignore_pattern else None
        return (
            f"Watching {len(self.targets)} container(s). "
            f"Patterns={self.error_pattern.pattern} Ignore={ignore}"
        )

    def process_line(self, source: str, raw: str, now: float | None = None) -> LineClass | None:
        """Run one raw log line through the pipeline.

        Returns:
            The line's classification, or None for a blank line
        """
        text = strip_prefix(raw)
        if not text:
            LINES_PROCESSED.labels(result="blank").inc()
            return None

        result = classify(text, self.error_pattern, self.ignore_pattern)
        LINES_PROCESSED.labels(result=result.value).inc()
        if result is not LineClass.QUALIFYING:
            return result

        now = self.clock() if now is None else now
        fp = fingerprint(text)
        hit = self.tracker.mark_hit(source, fp, text, now)
        TRACKED_FINGERPRINTS.set(self.tracker.fingerprint_count())

        if self.rate_limiter.can_alert(source, fp, now, self.rate_limit):
            ALERTS.labels(status="sent").inc()
            self.dispatcher.alert_now(source, text)
        else:
            ALERTS.labels(status="suppressed").inc()
            log.debug(
                "Alert suppressed",
                container=source,
                fingerprint=fp[:12],
                count=hit.count,
                retry_in=self.rate_limiter.time_until_alert(source, fp, now, self.rate_limit),
            )
        return result

    def _tail(self, source: Source, stream_class: StreamClass, lines: Iterable[str]) -> None:
        """Consume one stream in arrival order until it ends."""
        try:
            for raw in lines:
                if self._stop_event.is_set():
                    break
                self.process_line(source.name, raw)
        except Exception:
            log.exception(
                "Log stream failed", container=source.name, stream=stream_class.value
            )

        with self._streams_lock:
            self._open_streams -= 1
        STREAMS_CLOSED.labels(stream=stream_class.value).inc()
        log.info("Log stream closed", container=source.name, stream=stream_class.value)
        self.sink.info(f"[{source.name}] log stream closed")

    def health(self) -> dict[str, Any]:
        """Status report for the /health endpoint."""
        with self._streams_lock:
            open_streams = self._open_streams
        return {
            "status": "ok" if open_streams > 0 else "degraded",
            "containers": len(self.targets),
            "streams_open": open_streams,
            "tracked_fingerprints": self.tracker.fingerprint_count(),
        }

    def _schedule_loop(self) -> None:
        """Run the scheduler loop."""
        while not self._stop_event.wait(1):
            try:
                self.scheduler.run_pending()
            except Exception:
                log.exception("Scheduled summary failed")

    def start(self) -> list[threading.Thread]:
        """Open every target's streams and start one tail thread per stream."""
        self.sink.info(self.banner())

        self.scheduler.every(self.summarize_every).seconds.do(self.summary.tick)
        scheduler_thread = threading.Thread(
            target=self._schedule_loop, name="summary", daemon=True
        )
        scheduler_thread.start()
        log.info("Summary scheduled", every_seconds=self.summarize_every)

        tailers = []
        for source in self.targets:
            try:
                streams = self.log_source.open_line_sequences(source.id, self.since)
            except SourceOpenError as e:
                log.error("Skipping container", container=source.name, error=str(e))
                continue

            with self._streams_lock:
                self._open_streams += len(streams)
            for stream_class, lines in streams.items():
                thread = threading.Thread(
                    target=self._tail,
                    args=(source, stream_class, lines),
                    name=f"tail-{source.name}-{stream_class.value}",
                    daemon=True,
                )
                thread.start()
                tailers.append(thread)
            log.info("Started log tailer", container=source.name)

        self._threads = [scheduler_thread, *tailers]
        return tailers

    def join(self, timeout: float | None = None) -> None:
        """Wait for the tail threads to finish (their streams ended)."""
        for thread in self._threads:
            if thread.name != "summary":
                thread.join(timeout)

    def run(self) -> None:
        """Start the daemon and block until stopped."""
        log.info("Starting sentinel daemon", containers=[s.name for s in self.targets])
        self.start()
        try:
            while not self._stop_event.wait(1):
                pass
        except KeyboardInterrupt:
            log.info("Received shutdown signal")
            self.stop()
        finally:
            self.dispatcher.close(wait=False)

    def stop(self) -> None:
        """Stop the daemon."""
        log.info("Stopping sentinel daemon")
        self._stop_event.set()
        self.scheduler.clear()


def build_daemon(
    config: Config,
    watch_all: bool,
    containers: Iterable[str] | None,
    log_source: LogSource | None = None,
    sink: LocalSink | None = None,
) -> SentinelDaemon:
    """Validate configuration and assemble a daemon.

    Raises:
        ConfigError: Bad patterns, bad --since, bad intervals, or no target containers
        SentinelError: The container runtime cannot be queried
    """
    error_pattern = compile_pattern(config.error_pattern)
    if error_pattern is None:
        raise ConfigError("Error pattern must not be empty")
    ignore_pattern = compile_pattern(config.ignore_pattern)
    since = parse_since(config.since)
    if config.summarize_every <= 0:
        raise ConfigError(f"--summarize-every must be positive, got {config.summarize_every}")
    if config.rate_limit < 0:
        raise ConfigError(f"--rate-limit must not be negative, got {config.rate_limit}")
    if config.max_line_length <= 0:
        raise ConfigError(f"--max-line-length must be positive, got {config.max_line_length}")

    log_source = log_source or DockerLogSource(config.docker.base_url)
    targets = resolve_targets(log_source.list_running_sources(), watch_all, containers)

    webhook = (
        WebhookClient(config.webhook_url, channel=config.slack_channel)
        if config.webhook_url
        else None
    )
    dispatcher = AlertDispatcher(
        sink=sink, webhook=webhook, max_line_length=config.max_line_length
    )
    return SentinelDaemon(
        log_source=log_source,
        targets=targets,
        error_pattern=error_pattern,
        ignore_pattern=ignore_pattern,
        dispatcher=dispatcher,
        rate_limit=config.rate_limit,
        summarize_every=config.summarize_every,
        since=since,
    )


def run_sentinel(
    config: Config,
    watch_all: bool = False,
    containers: Iterable[str] | None = None,
    metrics_port: int | None = None,
) -> None:
    """Run the sentinel until interrupted."""
    daemon = build_daemon(config, watch_all, containers)
    if metrics_port:
        start_metrics_server(port=metrics_port, health=daemon.health)
    daemon.run()
