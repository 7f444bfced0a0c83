"""Schema definitions for metric alerts.

An alert represents a metric dimension crossing its configured threshold
(or a manually raised condition). Alerts are immutable once created; the
history copy is produced with ``dataclasses.replace`` and carries the
``processed`` / ``processed_at`` stamps.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Literal

Severity = Literal["info", "warning", "critical"]

VALID_SEVERITIES: frozenset[str] = frozenset({
    "info",
    "warning",
    "critical",
})

MetricDimension = Literal[
    "cpu",
    "memory",
    "disk",
    "response_time",
    "error_rate",
    "database",
]

# Evaluation order is fixed.
METRIC_DIMENSIONS: tuple[str, ...] = (
    "cpu",
    "memory",
    "disk",
    "response_time",
    "error_rate",
    "database",
)

MetricSnapshot = dict[str, Any]


@dataclass(frozen=True)
class Alert:
    """A single alert produced by evaluation or a manual trigger.

    Attributes:
        type: Alert type, ``<dimension>_high`` for evaluated alerts.
        severity: Urgency tier (info, warning, critical).
        message: Human-readable description.
        value: Observed metric value.
        threshold: Threshold the value was compared against.
        timestamp: When the alert was created (UTC).
        manual: Whether the alert was raised through the manual trigger.
        data: Extra context supplied with a manual trigger.
        alert_id: UUID4 identifier.
        processed: Set on the history copy once the alert is accepted.
        processed_at: When the alert was accepted.
    """

    type: str
    severity: str
    message: str
    value: float = 0.0
    threshold: float = 0.0
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    manual: bool = False
    data: dict[str, Any] = field(default_factory=dict)
    alert_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    processed: bool = False
    processed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.severity not in VALID_SEVERITIES:
            raise ValueError(
                f"Invalid severity {self.severity!r}. "
                f"Must be one of: {sorted(VALID_SEVERITIES)}"
            )

    def mark_processed(self, processed_at: datetime) -> "Alert":
        """Return the history copy of this alert."""
        return replace(
            self, processed=True, processed_at=processed_at, data=dict(self.data)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "alert_id": self.alert_id,
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "value": self.value,
            "threshold": self.threshold,
            "timestamp": self.timestamp.isoformat(),
            "manual": self.manual,
            "data": dict(self.data),
        }
        if self.processed:
            result["processed"] = True
            result["processed_at"] = (
                self.processed_at.isoformat() if self.processed_at else None
            )
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        """Create an Alert from a dictionary.

        Args:
            data: Dictionary with alert fields.

        Returns:
            Alert instance.
        """
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        elif timestamp is None:
            timestamp = datetime.now(timezone.utc)

        processed_at = data.get("processed_at")
        if isinstance(processed_at, str):
            processed_at = datetime.fromisoformat(processed_at)

        return cls(
            alert_id=data.get("alert_id", str(uuid.uuid4())),
            type=data["type"],
            severity=data["severity"],
            message=data["message"],
            value=float(data.get("value", 0.0)),
            threshold=float(data.get("threshold", 0.0)),
            timestamp=timestamp,
            manual=data.get("manual", False),
            data=data.get("data", {}),
            processed=data.get("processed", False),
            processed_at=processed_at,
        )
