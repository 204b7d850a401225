"""Exceptions raised by the sentinel."""


class SentinelError(Exception):
    """Fatal startup error (exit code 1)."""

    exit_code = 1


class ConfigError(SentinelError):
    """Invalid configuration: bad pattern, bad --since, no target containers."""

    exit_code = 2


class SourceOpenError(SentinelError):
    """A single container's log stream could not be opened."""

    pass
