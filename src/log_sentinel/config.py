"""Configuration loading for the log sentinel."""

import os
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import yaml

from log_sentinel.errors import ConfigError

DEFAULT_ERROR_PATTERN = (
    r"(error|exception|panic|fatal|segfault|stack trace|traceback|unhandled|critical"
    r"|ERR!|failed|reverted|execution reverted|gas needed)"
)
DEFAULT_IGNORE_PATTERN = (
    r"(healthcheck|heartbeat|timeout=0|connection reset by peer .* retrying"
    r"|client aborted connection)"
)

DEFAULT_CONFIG_PATH = Path.home() / ".log-sentinel" / "config.yaml"

_RELATIVE_SINCE_RE = re.compile(r"^([0-9]+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


@dataclass
class DockerConfig:
    """Docker Engine connection: a local socket or a remote host/port."""

    socket_path: str = "/var/run/docker.sock"
    host: str | None = None
    port: int = 2375

    @property
    def base_url(self) -> str:
        """Return the Docker SDK base URL."""
        if self.host:
            if "://" in self.host:
                return self.host
            return f"tcp://{self.host}:{self.port}"
        return f"unix://{self.socket_path}"


@dataclass
class Config:
    """Application configuration."""

    docker: DockerConfig = field(default_factory=DockerConfig)
    webhook_url: str | None = None
    slack_channel: str | None = None
    error_pattern: str = DEFAULT_ERROR_PATTERN
    ignore_pattern: str = DEFAULT_IGNORE_PATTERN
    since: str = "10m"
    summarize_every: int = 300
    rate_limit: int = 120
    max_line_length: int = 500

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ConfigError: If DOCKER_PORT is not a number
        """
        env = os.environ if env is None else env
        docker = DockerConfig(
            socket_path=env.get("DOCKER_SOCKET") or "/var/run/docker.sock",
            host=env.get("DOCKER_HOST") or None,
            port=_as_int(env.get("DOCKER_PORT") or 2375, "DOCKER_PORT"),
        )
        return cls(docker=docker, webhook_url=resolve_webhook_url(env))

    @classmethod
    def from_file(cls, path: Path, env: Mapping[str, str] | None = None) -> "Config":
        """Load configuration from a YAML file, with env var overrides.

        Raises:
            ConfigError: If the file is not valid YAML or holds bad values
        """
        config = cls.from_env(env)

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid config file {path}: {e}") from e

            if data is not None and not isinstance(data, dict):
                raise ConfigError(f"Invalid config file {path}: expected a mapping")

            if data and "patterns" in data:
                patterns = _section(data, "patterns")
                config.error_pattern = patterns.get("error", config.error_pattern)
                config.ignore_pattern = patterns.get("ignore", config.ignore_pattern)

            if data and "alerts" in data:
                alerts = _section(data, "alerts")
                config.rate_limit = _as_int(
                    alerts.get("rate_limit", config.rate_limit), "alerts.rate_limit"
                )
                config.max_line_length = _as_int(
                    alerts.get("max_line_length", config.max_line_length),
                    "alerts.max_line_length",
                )
                config.slack_channel = alerts.get("slack_channel", config.slack_channel)

            if data and "summary" in data:
                summary = _section(data, "summary")
                config.summarize_every = _as_int(
                    summary.get("every", config.summarize_every), "summary.every"
                )

            if data and "since" in data:
                config.since = str(data["since"])

            if data and "docker" in data and not config.docker.host:
                d = _section(data, "docker")
                config.docker = DockerConfig(
                    socket_path=d.get("socket", config.docker.socket_path),
                    host=d.get("host"),
                    port=_as_int(d.get("port", config.docker.port), "docker.port"),
                )

        return config


def _section(data: dict, key: str) -> dict:
    section = data[key] or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{key}' must be a mapping")
    return section


def _as_int(value: object, name: str) -> int:
    """Coerce a config value to int, reporting the setting name on failure."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def resolve_webhook_url(env: Mapping[str, str]) -> str | None:
    """Webhook URL from the environment; Lark takes priority over Slack."""
    return env.get("LARK_WEBHOOK_URL") or env.get("SLACK_WEBHOOK_URL") or None


def parse_since(since: str | None, now: float | None = None) -> int | None:
    """Parse a --since value into epoch seconds.

    Accepts a relative duration like '10m', '1h', '2d' or an ISO-8601
    timestamp like '2025-09-01T00:00:00Z'. Empty means no lower bound.

    Raises:
        ConfigError: If the value is neither form
    """
    if not since:
        return None
    since = since.strip()
    now = time.time() if now is None else now

    match = _RELATIVE_SINCE_RE.match(since)
    if match:
        return int(now) - int(match.group(1)) * _UNIT_SECONDS[match.group(2)]

    try:
        parsed = datetime.fromisoformat(since.replace("Z", "+00:00"))
    except ValueError as e:
        raise ConfigError(
            f"Invalid --since value: {since}. Use e.g. 10m, 1h, 2025-09-01T00:00:00Z"
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())
