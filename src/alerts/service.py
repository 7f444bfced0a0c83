"""Alert service orchestrating metric evaluation, dedup, storage, and dispatch.

Threshold checks are delegated to stateless functions in ``triggers.py``;
this class owns the mutable state (thresholds, active list, history) and
the side effects (notification dispatch).

Candidates from one ``evaluate`` call are pushed through intake one at a
time and awaited, so two alerts of the same type in a single snapshot
can never both pass the dedup check. The check-then-accept step contains
no ``await`` and is therefore never interleaved with another intake.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from src.alerts.config import (
    ACTIVE_RETENTION_SECONDS,
    DEDUP_WINDOW_SECONDS,
    AlertConfig,
)
from src.alerts.dispatcher import ChannelResult, DispatchReport, NotificationDispatcher
from src.alerts.schemas import METRIC_DIMENSIONS, Alert
from src.alerts.store import AlertStore
from src.alerts.thresholds import ThresholdStore
from src.alerts.triggers import check_metric
from src.observability.metrics import AlertMetrics, get_metrics

logger = logging.getLogger(__name__)

DEDUP_WINDOW = timedelta(seconds=DEDUP_WINDOW_SECONDS)
ACTIVE_RETENTION = timedelta(seconds=ACTIVE_RETENTION_SECONDS)
STATS_WEEK = timedelta(days=7)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertService:
    """Threshold-driven alert engine.

    Args:
        dispatcher: Notification dispatcher. None disables notifications.
        thresholds: Threshold store (defaults from environment).
        config: Engine configuration (defaults from environment).
        store: Alert store; built from ``config.max_history_size`` if None.
        clock: Returns the current aware UTC time.
        metrics: Prometheus collector.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher | None = None,
        thresholds: ThresholdStore | None = None,
        config: AlertConfig | None = None,
        store: AlertStore | None = None,
        clock: Callable[[], datetime] | None = None,
        metrics: AlertMetrics | None = None,
    ) -> None:
        self._config = config or AlertConfig()
        self._dispatcher = dispatcher
        self._thresholds = thresholds or ThresholdStore()
        self._store = store or AlertStore(self._config.max_history_size)
        self._clock = clock or _utcnow
        self._metrics = metrics or get_metrics()
        self._pending: set[asyncio.Task] = set()

    @property
    def store(self) -> AlertStore:
        return self._store

    @property
    def dispatcher(self) -> NotificationDispatcher | None:
        return self._dispatcher

    @property
    def pending_dispatches(self) -> int:
        """Background dispatch tasks not yet finished."""
        return len(self._pending)

    # ── Evaluation ──────────────────────────────────────────

    async def evaluate(self, snapshot: Mapping[str, Any]) -> list[Alert]:
        """Check a metric snapshot against the current thresholds.

        Dimensions are checked in fixed order; each fired alert goes
        through intake before the next dimension is read.

        Args:
            snapshot: Dimension → value (or collector reading mapping).

        Returns:
            Every alert produced, including ones suppressed by dedup.
        """
        candidates: list[Alert] = []
        accepted = 0

        for dimension in METRIC_DIMENSIONS:
            alert = check_metric(
                dimension,
                snapshot,
                self._thresholds.get(dimension),
                now=self._clock(),
            )
            if alert is None:
                continue

            candidates.append(alert)
            if await self.process_alert(alert):
                accepted += 1

        if candidates:
            logger.info(
                "Snapshot evaluated: %d candidates, %d accepted",
                len(candidates), accepted,
            )
        return candidates

    # ── Intake ──────────────────────────────────────────────

    def _is_duplicate(self, alert: Alert, now: datetime) -> bool:
        """Whether an active alert of the same type is inside the dedup window."""
        return self._store.has_recent(alert.type, DEDUP_WINDOW, now)

    async def process_alert(self, alert: Alert) -> bool:
        """Dedup, record, and dispatch a single alert.

        Args:
            alert: Candidate alert.

        Returns:
            True if the alert was accepted, False if deduplicated.
        """
        now = self._clock()

        if self._is_duplicate(alert, now):
            logger.debug("Skipping duplicate alert %s: %s", alert.type, alert.message)
            self._metrics.record_alert(alert.type, alert.severity, "deduplicated")
            return False

        self._store.accept(alert, now)
        self._metrics.record_alert(alert.type, alert.severity, "accepted")
        self._metrics.set_store_sizes(
            len(self._store.active), len(self._store.history),
        )
        logger.warning(
            "Alert triggered: %s (%s, value=%s, threshold=%s)",
            alert.message, alert.severity, alert.value, alert.threshold,
        )

        if self._config.background_dispatch:
            task = asyncio.create_task(
                self._dispatch(alert), name=f"dispatch_{alert.alert_id}",
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            await self._dispatch(alert)

        return True

    async def _dispatch(self, alert: Alert) -> DispatchReport | None:
        if self._dispatcher is None:
            return None
        try:
            return await self._dispatcher.dispatch(alert)
        except Exception as e:
            logger.error(
                "Notification dispatch failed for alert %s: %s",
                alert.alert_id, e,
                exc_info=True,
            )
            return None

    async def drain(self) -> None:
        """Wait for all background dispatch tasks to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Drain pending dispatches and release channel resources."""
        await self.drain()
        if self._dispatcher is not None:
            await self._dispatcher.close()

    # ── Active list maintenance ─────────────────────────────

    def clear_resolved_alerts(self) -> int:
        """Remove active alerts older than 24 hours.

        Returns:
            Number of alerts removed.
        """
        removed = self._store.prune_active(ACTIVE_RETENTION, self._clock())
        self._metrics.set_store_sizes(
            len(self._store.active), len(self._store.history),
        )
        if removed:
            logger.info("Cleared %d resolved alerts", removed)
        return removed

    def remove_alert(self, alert_id: str) -> Alert | None:
        """Remove one alert from the active list. History is untouched."""
        removed = self._store.remove_active(alert_id)
        if removed is not None:
            logger.info("Removed active alert %s (%s)", alert_id, removed.type)
        return removed

    # ── Administrative entry points ─────────────────────────

    async def trigger_manual_alert(
        self,
        alert_type: str,
        message: str,
        severity: str = "warning",
        data: Mapping[str, Any] | None = None,
    ) -> Alert:
        """Raise an alert directly, skipping thresholds and classification.

        The alert still goes through dedup, storage, and dispatch.

        Args:
            alert_type: Alert type label.
            message: Human-readable description.
            severity: info, warning, or critical.
            data: Extra context; ``value`` and ``threshold`` keys populate
                the matching alert fields.

        Returns:
            The constructed alert (whether or not it was deduplicated).

        Raises:
            ValueError: If severity is invalid.
        """
        extra = dict(data or {})
        value = extra.pop("value", 0) or 0
        threshold = extra.pop("threshold", 0) or 0

        alert = Alert(
            type=alert_type,
            severity=severity,
            message=message,
            value=float(value),
            threshold=float(threshold),
            timestamp=self._clock(),
            manual=True,
            data=extra,
        )
        await self.process_alert(alert)
        return alert

    def update_thresholds(self, partial: Mapping[str, float]) -> dict[str, float]:
        """Merge new threshold values; see ``ThresholdStore.update``."""
        return self._thresholds.update(partial)

    def get_thresholds(self) -> dict[str, float]:
        return self._thresholds.as_dict()

    async def send_test_notification(self, channel: str) -> ChannelResult:
        """Send a synthetic info alert to one channel.

        Bypasses severity routing, dedup, and storage.

        Raises:
            KeyError: If the channel is unknown or notifications are disabled.
        """
        if self._dispatcher is None:
            raise KeyError(channel)

        alert = Alert(
            type="test_alert",
            severity="info",
            message="This is a test alert",
            timestamp=self._clock(),
            manual=True,
        )
        return await self._dispatcher.send_to_channel(channel, alert)

    # ── Read accessors ──────────────────────────────────────

    def get_current_alerts(
        self,
        alert_type: str | None = None,
        severity: str | None = None,
        limit: int | None = None,
    ) -> list[Alert]:
        """Active alerts, oldest first, optionally filtered."""
        alerts = self._store.active
        if alert_type:
            alerts = [a for a in alerts if a.type == alert_type]
        if severity:
            alerts = [a for a in alerts if a.severity == severity]
        if limit is not None:
            alerts = alerts[-limit:] if limit > 0 else []
        return alerts

    def get_alert_history(
        self,
        limit: int = 100,
        alert_type: str | None = None,
        severity: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Alert]:
        """The newest ``limit`` history entries, then filtered.

        Args:
            limit: Tail size taken before filtering.
            alert_type: Keep only this type.
            severity: Keep only this severity.
            start: Keep entries at or after this time.
            end: Keep entries at or before this time.
        """
        history = self._store.recent_history(limit)
        if alert_type:
            history = [a for a in history if a.type == alert_type]
        if severity:
            history = [a for a in history if a.severity == severity]
        if start is not None:
            history = [a for a in history if a.timestamp >= start]
        if end is not None:
            history = [a for a in history if a.timestamp <= end]
        return history

    def get_alert_stats(self) -> dict[str, Any]:
        """Counts derived from history on every call.

        Type and severity breakdowns cover the last 24 hours.
        """
        now = self._clock()
        history = self._store.history
        last_24h = [a for a in history if now - a.timestamp < ACTIVE_RETENTION]
        last_7d = [a for a in history if now - a.timestamp < STATS_WEEK]

        return {
            "current_alerts": len(self._store.active),
            "total_alerts_24h": len(last_24h),
            "total_alerts_7d": len(last_7d),
            "total_alerts": len(history),
            "alerts_by_type": dict(Counter(a.type for a in last_24h)),
            "alerts_by_severity": dict(Counter(a.severity for a in last_24h)),
        }

    def status(self) -> dict[str, Any]:
        """Engine status for health reporting."""
        channels: dict[str, bool] = {}
        if self._dispatcher is not None:
            channels = {
                name: ch.is_configured
                for name, ch in self._dispatcher.channels.items()
            }
        return {
            "active_alerts": len(self._store.active),
            "history_size": len(self._store.history),
            "max_history_size": self._store.max_history_size,
            "pending_dispatches": self.pending_dispatches,
            "channels": channels,
        }
