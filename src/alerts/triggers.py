"""Stateless trigger functions for metric alert detection.

Each function reads a metric snapshot and current thresholds and returns
an Alert when a dimension is over its limit, or None otherwise. No I/O,
no state. Dedup, storage and dispatch live in AlertService.
"""

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from numbers import Real
from typing import Any

from src.alerts.schemas import METRIC_DIMENSIONS, Alert, Severity

CRITICAL_RATIO = 1.20
WARNING_RATIO = 1.00

# Nested reading field per dimension, as emitted by the metrics collector.
_READING_FIELDS: dict[str, tuple[str, ...]] = {
    "cpu": ("usage",),
    "memory": ("usage",),
    "disk": ("usage",),
    "response_time": ("average",),
    "error_rate": ("percentage",),
    "database": ("connection_usage", "connectionUsage"),
}

_SNAPSHOT_KEYS: dict[str, tuple[str, ...]] = {
    "cpu": ("cpu",),
    "memory": ("memory",),
    "disk": ("disk",),
    "response_time": ("response_time", "responseTime"),
    "error_rate": ("error_rate", "errorRate"),
    "database": ("database",),
}

_LABELS: dict[str, tuple[str, str]] = {
    "cpu": ("CPU usage", "%"),
    "memory": ("Memory usage", "%"),
    "disk": ("Disk usage", "%"),
    "response_time": ("API response time", "ms"),
    "error_rate": ("Error rate", "%"),
    "database": ("Database connection usage", "%"),
}


def classify_severity(value: float, threshold: float) -> Severity:
    """Map a value/threshold ratio onto a severity tier.

    ``ratio >= 1.2`` is critical, ``1.0 <= ratio < 1.2`` is warning, and
    anything lower is info. ``threshold`` must be positive.
    """
    ratio = value / threshold
    if ratio >= CRITICAL_RATIO:
        return "critical"
    if ratio >= WARNING_RATIO:
        return "warning"
    return "info"


def _as_number(raw: Any) -> float | None:
    # bool is a Real subclass; a flag is not a reading. NaN and inf are not
    # readings either.
    if isinstance(raw, bool) or not isinstance(raw, Real):
        return None
    value = float(raw)
    return value if math.isfinite(value) else None


def extract_metric_value(snapshot: Mapping[str, Any], dimension: str) -> float | None:
    """Read one dimension's value from a snapshot.

    Accepts either a bare number or the collector's nested mapping
    (e.g. ``{"cpu": {"usage": 95.0}}``).

    Args:
        snapshot: Metric snapshot.
        dimension: One of METRIC_DIMENSIONS.

    Returns:
        The numeric reading, or None when absent, not numeric or not finite.
    """
    raw: Any = None
    for key in _SNAPSHOT_KEYS[dimension]:
        if key in snapshot:
            raw = snapshot[key]
            break

    if isinstance(raw, Mapping):
        for field_name in _READING_FIELDS[dimension]:
            if field_name in raw:
                return _as_number(raw[field_name])
        return None

    return _as_number(raw)


def format_metric_message(dimension: str, value: float) -> str:
    """Render the human-readable message for an over-threshold dimension."""
    label, unit = _LABELS[dimension]
    return f"{label} too high: {value:.2f}{unit}"


def check_metric(
    dimension: str,
    snapshot: Mapping[str, Any],
    threshold: float,
    now: datetime | None = None,
) -> Alert | None:
    """Check a single dimension against its threshold.

    Fires only when the value is strictly greater than the threshold.

    Args:
        dimension: Metric dimension name.
        snapshot: Metric snapshot.
        threshold: Current threshold for the dimension.
        now: Alert timestamp (defaults to current UTC time).

    Returns:
        Alert or None.
    """
    value = extract_metric_value(snapshot, dimension)
    if value is None or not value > threshold:
        return None

    return Alert(
        type=f"{dimension}_high",
        severity=classify_severity(value, threshold),
        message=format_metric_message(dimension, value),
        value=value,
        threshold=threshold,
        timestamp=now or datetime.now(timezone.utc),
    )


def check_all_metrics(
    snapshot: Mapping[str, Any],
    thresholds: Mapping[str, float],
    now: datetime | None = None,
) -> list[Alert]:
    """Run every dimension check in fixed order and collect fired alerts."""
    alerts: list[Alert] = []
    for dimension in METRIC_DIMENSIONS:
        alert = check_metric(dimension, snapshot, thresholds[dimension], now)
        if alert is not None:
            alerts.append(alert)
    return alerts
