"""
Command-line interface for the CardStrategy alert engine.

Usage:
    cardstrategy-alerts serve                 # Run the alert API
    cardstrategy-alerts evaluate snapshot.json
    cardstrategy-alerts watch snapshot.json   # Re-evaluate on an interval
    cardstrategy-alerts test-notify slack     # Send a test alert to one channel
    cardstrategy-alerts thresholds            # Show configured thresholds
"""

import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any

import click

from src.config.settings import get_settings
from src.observability.logging import get_logger, setup_logging
from src.observability.metrics import get_metrics

logger = get_logger(__name__)

_SEVERITY_COLORS = {"critical": "red", "warning": "yellow", "info": "blue"}


def _load_snapshot(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}")
    if not isinstance(data, dict):
        raise click.ClickException(f"Snapshot in {path} must be a JSON object")
    return data


def _echo_alert(alert) -> None:
    color = _SEVERITY_COLORS.get(alert.severity, "white")
    click.echo(
        click.style(f"[{alert.severity.upper():8}]", fg=color)
        + f" {alert.type}: {alert.message}"
        + f" (value={alert.value:g}, threshold={alert.threshold:g})"
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--json-logs/--console-logs",
    default=None,
    help="Log rendering (default: JSON in production only)",
)
def main(debug: bool, json_logs: bool | None) -> None:
    """CardStrategy alert engine."""
    setup_logging(level="DEBUG" if debug else None, json_logs=json_logs)


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def serve(host: str | None, port: int | None, reload: bool, metrics: bool) -> None:
    """Start the alert API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    if metrics:
        get_metrics().start_server(port=settings.metrics_port)
        click.echo(f"Metrics available on http://localhost:{settings.metrics_port}/metrics")

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--dry-run",
    is_flag=True,
    help="Only report which thresholds are exceeded; no dedup or notifications",
)
def evaluate(snapshot_file: Path, dry_run: bool) -> None:
    """Evaluate a JSON metric snapshot once."""
    from src.alerts.thresholds import ThresholdStore
    from src.alerts.triggers import check_all_metrics
    from src.api.dependencies import build_alert_service

    snapshot = _load_snapshot(snapshot_file)

    if dry_run:
        alerts = check_all_metrics(snapshot, ThresholdStore().as_dict())
    else:
        async def run():
            service = build_alert_service()
            try:
                return await service.evaluate(snapshot)
            finally:
                await service.aclose()

        alerts = asyncio.run(run())

    if not alerts:
        click.echo(click.style("All metrics within thresholds", fg="green"))
        return

    for alert in alerts:
        _echo_alert(alert)


@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--interval", default=None, type=float, help="Seconds between evaluations")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def watch(snapshot_file: Path, interval: float | None, metrics: bool) -> None:
    """Re-read and evaluate a snapshot file on an interval.

    The file is expected to be rewritten by an external collector.
    """
    from src.alerts.config import AlertConfig
    from src.alerts.scheduler import AlertScheduler
    from src.api.dependencies import build_alert_service

    interval = interval or AlertConfig().evaluation_interval_seconds

    async def run():
        service = build_alert_service()
        scheduler = AlertScheduler(
            service,
            lambda: _load_snapshot(snapshot_file),
            interval_seconds=interval,
        )

        if metrics:
            get_metrics().start_server()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, scheduler.stop)

        try:
            await scheduler.start()
        finally:
            await service.aclose()

    logger.info("Watching snapshot file", path=str(snapshot_file), interval=interval)
    asyncio.run(run())


@main.command("test-notify")
@click.argument("channel", type=click.Choice(["email", "slack", "webhook", "sms"]))
def test_notify(channel: str) -> None:
    """Send a test alert through one notification channel."""
    from src.api.dependencies import build_alert_service

    async def run():
        service = build_alert_service()
        try:
            return await service.send_test_notification(channel)
        finally:
            await service.aclose()

    result = asyncio.run(run())

    if result.status == "sent":
        click.echo(click.style(f"{channel}: sent", fg="green"))
    elif result.status == "skipped":
        click.echo(click.style(f"{channel}: not configured", fg="yellow"))
    else:
        click.echo(click.style(f"{channel}: failed {result.error or ''}".rstrip(), fg="red"))
        sys.exit(1)


@main.command()
def thresholds() -> None:
    """Show the thresholds loaded from the environment."""
    from src.alerts.thresholds import ThresholdStore

    for dimension, value in ThresholdStore().as_dict().items():
        click.echo(f"{dimension:15} {value:g}")


if __name__ == "__main__":
    main()
