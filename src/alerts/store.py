"""In-memory alert store: an active list plus a bounded history.

The active list holds alerts considered open; it grows until pruned by age.
History is a fixed-capacity ring buffer (``deque(maxlen=...)``): appending
past capacity drops the oldest entry.
"""

from collections import deque
from datetime import datetime, timedelta

from src.alerts.schemas import Alert


class AlertStore:
    """Container for active and historical alerts.

    All operations are synchronous and never suspend, so a dedup check
    followed by ``accept`` is atomic with respect to other coroutines.
    """

    def __init__(self, max_history_size: int = 1000) -> None:
        if max_history_size < 1:
            raise ValueError("max_history_size must be at least 1")
        self._active: list[Alert] = []
        self._history: deque[Alert] = deque(maxlen=max_history_size)

    @property
    def max_history_size(self) -> int:
        return self._history.maxlen  # type: ignore[return-value]

    @property
    def active(self) -> list[Alert]:
        """Snapshot of the active list (oldest first)."""
        return list(self._active)

    @property
    def history(self) -> list[Alert]:
        """Snapshot of the history (oldest first)."""
        return list(self._history)

    def has_recent(self, alert_type: str, window: timedelta, now: datetime) -> bool:
        """Whether an active alert of this type is younger than ``window``."""
        return any(
            a.type == alert_type and now - a.timestamp < window
            for a in self._active
        )

    def accept(self, alert: Alert, now: datetime) -> Alert:
        """Record an alert in both collections.

        Args:
            alert: The accepted alert.
            now: Processing time stamped on the history copy.

        Returns:
            The history copy.
        """
        self._active.append(alert)
        entry = alert.mark_processed(now)
        self._history.append(entry)
        return entry

    def prune_active(self, max_age: timedelta, now: datetime) -> int:
        """Drop active alerts older than ``max_age``.

        Returns:
            Number of alerts removed.
        """
        before = len(self._active)
        self._active = [a for a in self._active if now - a.timestamp < max_age]
        return before - len(self._active)

    def remove_active(self, alert_id: str) -> Alert | None:
        """Remove a single active alert by id, returning it if found."""
        for i, alert in enumerate(self._active):
            if alert.alert_id == alert_id:
                return self._active.pop(i)
        return None

    def recent_history(self, limit: int) -> list[Alert]:
        """Return the newest ``limit`` history entries, oldest first."""
        if limit <= 0:
            return []
        items = list(self._history)
        return items[-limit:]
