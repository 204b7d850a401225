"""Docker log sources: container discovery and per-stream line iterators."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

import docker
import structlog

from log_sentinel.errors import SentinelError, SourceOpenError

log = structlog.get_logger()


@dataclass(frozen=True)
class Source:
    """One monitored container."""

    id: str
    name: str


class StreamClass(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


def iter_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Re-split a stream of log frames into text lines.

    Frames may hold several lines or a partial one; a trailing partial line
    is yielded when the stream ends.
    """
    buffer = b""
    for chunk in chunks:
        buffer += chunk
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            yield line.decode("utf-8", errors="replace").rstrip("\r")
    if buffer:
        yield buffer.decode("utf-8", errors="replace").rstrip("\r")


class DockerLogSource:
    """Log-source collaborator backed by the Docker Engine API."""

    def __init__(self, base_url: str, client: docker.DockerClient | None = None):
        self.base_url = base_url
        if client is None:
            try:
                client = docker.DockerClient(base_url=base_url)
            except docker.errors.DockerException as e:
                raise SentinelError(f"Cannot connect to Docker at {base_url}: {e}") from e
        self.client = client

    def list_running_sources(self) -> list[Source]:
        """List running containers.

        Raises:
            SentinelError: If the Docker daemon cannot be queried
        """
        try:
            containers = self.client.containers.list()
        except docker.errors.DockerException as e:
            raise SentinelError(f"Cannot list containers via {self.base_url}: {e}") from e

        sources = []
        for container in containers:
            name = (container.name or "").lstrip("/")
            if name:
                sources.append(Source(id=container.id, name=name))
        return sources

    def open_line_sequences(
        self, source_id: str, since: int | None = None
    ) -> dict[StreamClass, Iterator[str]]:
        """Follow a container's stdout and stderr as separate line iterators.

        Raises:
            SourceOpenError: If the container or its logs cannot be opened
        """
        try:
            container = self.client.containers.get(source_id)
            streams = {}
            for stream_class in StreamClass:
                kwargs = {
                    "stream": True,
                    "follow": True,
                    "stdout": stream_class is StreamClass.STDOUT,
                    "stderr": stream_class is StreamClass.STDERR,
                }
                if since is not None:
                    kwargs["since"] = since
                streams[stream_class] = iter_lines(container.logs(**kwargs))
            return streams
        except docker.errors.NotFound as e:
            raise SourceOpenError(f"Container not found: {source_id}") from e
        except docker.errors.DockerException as e:
            raise SourceOpenError(f"Cannot open logs for {source_id}: {e}") from e
