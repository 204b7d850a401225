"""Docker log sentinel: deduplicated, rate-limited alerts from container logs."""

__version__ = "0.1.0"
