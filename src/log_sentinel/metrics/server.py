"""HTTP endpoint exposing Prometheus metrics and sentinel health."""

import json
import logging
import threading
from collections.abc import Callable
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

logger = logging.getLogger(__name__)

StartResponse = Callable[[str, list[tuple[str, str]]], Any]
HealthCheck = Callable[[], dict[str, Any]]

_server_lock = threading.Lock()
_server_thread: threading.Thread | None = None


class _QuietHandler(WSGIRequestHandler):
    """Scrapes every few seconds would flood stderr otherwise."""

    def log_message(self, format: str, *args: object) -> None:
        pass


def make_metrics_app(health: HealthCheck | None = None) -> Callable[..., list[bytes]]:
    """Build a WSGI app serving /metrics and /health.

    `health` returns a status dict; a "status" other than "ok" answers 503.
    """

    def app(environ: dict[str, Any], start_response: StartResponse) -> list[bytes]:
        path = environ.get("PATH_INFO", "/")

        if path == "/metrics":
            start_response("200 OK", [("Content-Type", CONTENT_TYPE_LATEST)])
            return [generate_latest(REGISTRY)]

        if path == "/health":
            report = health() if health else {"status": "ok"}
            status = "200 OK" if report.get("status") == "ok" else "503 Service Unavailable"
            start_response(status, [("Content-Type", "application/json")])
            return [json.dumps(report).encode()]

        start_response("404 Not Found", [("Content-Type", "text/plain")])
        return [b"Not Found"]

    return app


def start_metrics_server(
    port: int = 9108, host: str = "0.0.0.0", health: HealthCheck | None = None
) -> threading.Thread:
    """Serve metrics from a daemon thread; repeated calls reuse the running server."""
    global _server_thread
    with _server_lock:
        if _server_thread is not None and _server_thread.is_alive():
            return _server_thread

        server = make_server(host, port, make_metrics_app(health), handler_class=_QuietHandler)

        def serve_forever() -> None:
            try:
                logger.info("Metrics server listening on %s:%d", host, port)
                server.serve_forever()
            except Exception:
                logger.exception("Metrics server failed unexpectedly")

        _server_thread = threading.Thread(target=serve_forever, name="metrics", daemon=True)
        _server_thread.start()
        return _server_thread
