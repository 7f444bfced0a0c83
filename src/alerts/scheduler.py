"""Periodic snapshot evaluation.

Pulls a metric snapshot from a caller-supplied function on a fixed
interval and hands it to ``AlertService.evaluate``. Collector errors are
logged and the loop continues. Active-list pruning is left to callers.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from src.alerts.schemas import Alert
from src.alerts.service import AlertService

logger = logging.getLogger(__name__)

SnapshotFn = Callable[[], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]


class AlertScheduler:
    """Runs ``evaluate`` on a timer until stopped.

    Usage:
        scheduler = AlertScheduler(service, collect_metrics, interval_seconds=60)
        await scheduler.start()  # Runs until stop()
    """

    def __init__(
        self,
        service: AlertService,
        snapshot_fn: SnapshotFn,
        interval_seconds: float = 60.0,
    ) -> None:
        self._service = service
        self._snapshot_fn = snapshot_fn
        self._interval = interval_seconds
        self._running = False
        self._ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def ticks(self) -> int:
        """Completed evaluation cycles."""
        return self._ticks

    async def run_once(self) -> list[Alert]:
        """Collect one snapshot and evaluate it."""
        snapshot = self._snapshot_fn()
        if inspect.isawaitable(snapshot):
            snapshot = await snapshot
        alerts = await self._service.evaluate(snapshot)
        self._ticks += 1
        return alerts

    async def start(self) -> None:
        """Evaluate on every interval until ``stop()`` is called."""
        self._running = True
        logger.info("Alert scheduler started (interval=%.1fs)", self._interval)

        while self._running:
            started = time.monotonic()
            try:
                alerts = await self.run_once()
                logger.debug("Scheduled evaluation produced %d alerts", len(alerts))
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Scheduled evaluation failed: %s", e, exc_info=True)

            elapsed = time.monotonic() - started
            try:
                await asyncio.sleep(max(0.0, self._interval - elapsed))
            except asyncio.CancelledError:
                break

        self._running = False
        logger.info("Alert scheduler stopped after %d ticks", self._ticks)

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._running = False
