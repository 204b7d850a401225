"""Alert dispatch: local console sink plus optional webhook."""

import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TextIO

import click
import structlog

from .webhook import WebhookClient

log = structlog.get_logger()

# Console alert lines are kept short; the webhook gets max_line_length
CONSOLE_ALERT_LENGTH = 200


def trim(text: str, length: int) -> str:
    """Cut text to `length` characters, marking the cut with an ellipsis."""
    return text[:length] + "…" if len(text) > length else text


class LocalSink:
    """Plain-text sink for alerts, summaries and stream notices."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None):
        self.out = out
        self.err = err
        self._lock = threading.Lock()

    def info(self, text: str) -> None:
        with self._lock:
            click.echo(text, file=self.out if self.out is not None else sys.stdout)

    def alert(self, text: str) -> None:
        with self._lock:
            click.echo(text, file=self.err if self.err is not None else sys.stderr)


class AlertDispatcher:
    """Renders alerts and summaries and emits them.

    The local sink is always written synchronously. Webhook delivery runs on a
    small thread pool so a slow endpoint never stalls log tailing.
    """

    def __init__(
        self,
        sink: LocalSink | None = None,
        webhook: WebhookClient | None = None,
        max_line_length: int = 500,
        max_workers: int = 2,
    ):
        self.sink = sink or LocalSink()
        self.webhook = webhook
        self.max_line_length = max_line_length
        self._executor = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="webhook")
            if webhook is not None
            else None
        )

    def render_alert(self, source: str, message: str) -> str:
        """Webhook rendering of an immediate alert."""
        return f"🚨 *{source}* error\n```\n{trim(message, self.max_line_length)}\n```"

    def alert_now(self, source: str, message: str) -> Future | None:
        """Emit an immediate alert for a container.

        Returns:
            The pending webhook delivery, or None when no webhook is configured
        """
        self.sink.alert(f"[ALERT] {source}: {trim(message, CONSOLE_ALERT_LENGTH)}")
        return self._forward(self.render_alert(source, message))

    def send_summary(self, text: str) -> Future | None:
        """Emit a summary digest."""
        self.sink.info(text)
        return self._forward(text)

    def _forward(self, text: str) -> Future | None:
        if self._executor is None or self.webhook is None:
            return None
        return self._executor.submit(self._deliver, self.webhook, text)

    @staticmethod
    def _deliver(webhook: WebhookClient, text: str) -> bool:
        try:
            return webhook.send(text)
        except Exception:
            # Delivery is best effort; nothing may escape into the pipeline
            log.exception("Unexpected webhook failure")
            return False

    def close(self, wait: bool = True) -> None:
        """Wait for pending deliveries and release the HTTP client."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
        if self.webhook is not None:
            self.webhook.close()
