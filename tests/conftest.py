"""Shared fixtures for sentinel tests."""

import io
from collections.abc import Iterable

import pytest

from log_sentinel.alerter import LocalSink, Source, StreamClass
from log_sentinel.errors import SourceOpenError


class FakeLogSource:
    """In-memory stand-in for the Docker log source."""

    def __init__(
        self,
        running: list[Source],
        lines: dict[str, dict[StreamClass, Iterable[str]]] | None = None,
        broken: Iterable[str] = (),
    ):
        self.running = running
        self.lines = lines or {}
        self.broken = set(broken)
        self.opened: list[tuple[str, int | None]] = []

    def list_running_sources(self) -> list[Source]:
        return list(self.running)

    def open_line_sequences(self, source_id, since=None):
        if source_id in self.broken:
            raise SourceOpenError(f"Container not found: {source_id}")
        self.opened.append((source_id, since))
        streams = self.lines.get(source_id, {})
        return {stream_class: iter(streams.get(stream_class, [])) for stream_class in StreamClass}


@pytest.fixture
def sink() -> LocalSink:
    return LocalSink(out=io.StringIO(), err=io.StringIO())


@pytest.fixture
def api() -> Source:
    return Source(id="c0ffee000001", name="api")


@pytest.fixture
def worker() -> Source:
    return Source(id="c0ffee000002", name="worker")
