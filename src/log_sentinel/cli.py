"""CLI for the Docker log sentinel.

Usage:
    log-sentinel run --all
    log-sentinel run --containers api,worker --since 5m
    log-sentinel containers
    log-sentinel fingerprint "Error: failed to connect to 10.0.0.5"
    log-sentinel test
"""

from pathlib import Path

import click

from log_sentinel import __version__
from log_sentinel.alerter import (
    DockerLogSource,
    WebhookClient,
    fingerprint,
    normalize_line,
    run_sentinel,
)
from log_sentinel.config import DEFAULT_CONFIG_PATH, Config
from log_sentinel.errors import SentinelError
from log_sentinel.logging import configure_logging, get_logger

log = get_logger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--json-logs/--console-logs", default=None, help="Log format (default: by TTY)")
@click.version_option(__version__, prog_name="log-sentinel")
@click.pass_context
def main(
    ctx: click.Context, config_path: Path, verbose: bool, json_logs: bool | None
) -> None:
    """Tail Docker logs and send deduplicated, rate-limited error alerts."""
    configure_logging("DEBUG" if verbose else "INFO", json_logs=json_logs)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = Config.from_file(config_path)
    except SentinelError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code)


@main.command("run")
@click.option("--all", "watch_all", is_flag=True, help="Watch all running containers")
@click.option(
    "--containers",
    "-c",
    multiple=True,
    help="Comma-separated container names to watch (repeatable)",
)
@click.option("--since", help="Only logs since e.g. 10m, 1h, 2025-09-01T00:00:00Z")
@click.option("--patterns", help="Regex for error detection (case-insensitive)")
@click.option("--ignore", help="Regex for lines to ignore; empty disables")
@click.option("--summarize-every", type=int, help="Seconds between summary alerts")
@click.option("--rate-limit", type=int, help="Minimum seconds between identical alerts")
@click.option("--max-line-length", type=int, help="Trim long lines to this length in alerts")
@click.option("--slack-channel", help="Override Slack channel (if webhook supports it)")
@click.option("--docker-socket", help="Docker socket path")
@click.option("--metrics-port", type=int, help="Serve Prometheus metrics on this port")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    watch_all: bool,
    containers: tuple[str, ...],
    since: str | None,
    patterns: str | None,
    ignore: str | None,
    summarize_every: int | None,
    rate_limit: int | None,
    max_line_length: int | None,
    slack_channel: str | None,
    docker_socket: str | None,
    metrics_port: int | None,
) -> None:
    """Run the sentinel until interrupted.

    Webhook alerts are sent when LARK_WEBHOOK_URL or SLACK_WEBHOOK_URL is set
    (Lark wins when both are).
    """
    config: Config = ctx.obj["config"]
    if since is not None:
        config.since = since
    if patterns is not None:
        config.error_pattern = patterns
    if ignore is not None:
        config.ignore_pattern = ignore
    if summarize_every is not None:
        config.summarize_every = summarize_every
    if rate_limit is not None:
        config.rate_limit = rate_limit
    if max_line_length is not None:
        config.max_line_length = max_line_length
    if slack_channel is not None:
        config.slack_channel = slack_channel
    if docker_socket is not None:
        config.docker.socket_path = docker_socket

    names = [name for value in containers for name in value.split(",")]

    try:
        run_sentinel(
            config,
            watch_all=watch_all,
            containers=names,
            metrics_port=metrics_port,
        )
    except SentinelError as e:
        log.error("Startup failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code)


@main.command("containers")
@click.pass_context
def containers_cmd(ctx: click.Context) -> None:
    """List running containers that can be watched."""
    config: Config = ctx.obj["config"]
    try:
        sources = DockerLogSource(config.docker.base_url).list_running_sources()
    except SentinelError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code)

    for source in sorted(sources, key=lambda s: s.name):
        click.echo(f"{source.id[:12]}  {source.name}")


@main.command("fingerprint")
@click.argument("line")
def fingerprint_cmd(line: str) -> None:
    """Show how a log line is normalized and fingerprinted."""
    click.echo(normalize_line(line))
    click.echo(fingerprint(line))


@main.command("test")
@click.pass_context
def test_cmd(ctx: click.Context) -> None:
    """Send a test alert to verify the webhook."""
    webhook = get_webhook(ctx.obj["config"])
    if webhook.send("✅ Docker Log Sentinel is configured correctly."):
        click.echo("Test alert sent successfully!")
    else:
        click.echo("Failed to send test alert")
        raise SystemExit(1)


@main.command("send")
@click.argument("message")
@click.pass_context
def send_cmd(ctx: click.Context, message: str) -> None:
    """Send a custom message to the webhook."""
    webhook = get_webhook(ctx.obj["config"])
    if webhook.send(message):
        click.echo("Message sent!")
    else:
        click.echo("Failed to send message")
        raise SystemExit(1)


# --- Utility Functions ---


def get_webhook(config: Config) -> WebhookClient:
    """Build the webhook client or exit with a configuration error."""
    if not config.webhook_url:
        click.echo("Error: LARK_WEBHOOK_URL or SLACK_WEBHOOK_URL environment variable not set")
        raise SystemExit(2)
    return WebhookClient(config.webhook_url, channel=config.slack_channel)


if __name__ == "__main__":
    main()
