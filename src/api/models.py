"""
Request and response models for the alert API.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from src.alerts.schemas import Alert


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error type",
    )


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Overall service status")
    version: str = Field(..., description="API version")
    engine: dict[str, Any] = Field(
        default_factory=dict,
        description="Alert engine status: list sizes and configured channels",
    )


# Alert models


class AlertItem(BaseModel):
    """Single alert record."""

    alert_id: str = Field(..., description="Unique alert identifier")
    type: str = Field(..., description="Alert type, e.g. cpu_high")
    severity: str = Field(..., description="Severity level: critical, warning, info")
    message: str = Field(..., description="Human-readable description")
    value: float = Field(..., description="Observed metric value")
    threshold: float = Field(..., description="Threshold the value was compared against")
    timestamp: str = Field(..., description="Alert creation timestamp (ISO format)")
    manual: bool = Field(default=False, description="Raised through the manual trigger")
    data: dict = Field(default_factory=dict, description="Extra manual-trigger context")
    processed: bool = Field(default=False, description="Set on history entries")
    processed_at: str | None = Field(default=None, description="Acceptance time (ISO format)")

    @classmethod
    def from_alert(cls, alert: Alert) -> "AlertItem":
        return cls(**alert.to_dict())


class AlertsResponse(BaseModel):
    """Response model for listing alerts."""

    alerts: list[AlertItem] = Field(..., description="List of alerts")
    total: int = Field(..., description="Number of alerts returned")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


class AlertStatsResponse(BaseModel):
    """Aggregated alert counts."""

    current_alerts: int = Field(..., description="Alerts in the active list")
    total_alerts_24h: int = Field(..., description="History entries from the last 24 hours")
    total_alerts_7d: int = Field(..., description="History entries from the last 7 days")
    total_alerts: int = Field(..., description="History entries retained")
    alerts_by_type: dict[str, int] = Field(..., description="Last-24h counts per type")
    alerts_by_severity: dict[str, int] = Field(..., description="Last-24h counts per severity")


class EvaluateRequest(BaseModel):
    """Metric snapshot submitted for evaluation."""

    metrics: dict[str, Any] = Field(
        ...,
        description=(
            "Snapshot keyed by dimension (cpu, memory, disk, response_time, "
            "error_rate, database); values are numbers or collector readings"
        ),
        examples=[{"cpu": {"usage": 95.0}, "memory": {"usage": 40.0}}],
    )


class TriggerAlertRequest(BaseModel):
    """Request model for raising a manual alert."""

    type: str = Field(..., min_length=1, max_length=100, description="Alert type label")
    message: str = Field(..., min_length=1, max_length=1000, description="Alert message")
    severity: Literal["info", "warning", "critical"] = Field(
        default="warning",
        description="Severity level",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra context; value and threshold keys fill the alert fields",
    )


class TriggerAlertResponse(BaseModel):
    """Response model for a manual alert."""

    alert: AlertItem = Field(..., description="The constructed alert")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


class ThresholdsResponse(BaseModel):
    """Current thresholds."""

    thresholds: dict[str, float] = Field(..., description="Threshold per metric dimension")


class ThresholdsUpdateRequest(BaseModel):
    """Partial threshold update."""

    thresholds: dict[str, float] = Field(
        ...,
        min_length=1,
        description="Dimension → new threshold; omitted dimensions are unchanged",
    )


class ClearAlertsResponse(BaseModel):
    """Result of pruning the active list."""

    before: int = Field(..., description="Active alerts before pruning")
    after: int = Field(..., description="Active alerts after pruning")
    removed: int = Field(..., description="Alerts removed")


class RemoveAlertResponse(BaseModel):
    """Result of removing one active alert."""

    alert_id: str = Field(..., description="Removed alert identifier")
    removed: bool = Field(..., description="Whether the alert was removed")


class ChannelTestRequest(BaseModel):
    """Request model for a channel test."""

    channel: Literal["email", "slack", "webhook", "sms"] = Field(
        ...,
        description="Channel to send the test alert through",
    )


class ChannelTestResponse(BaseModel):
    """Outcome of a channel test."""

    channel: str = Field(..., description="Channel name")
    status: str = Field(..., description="sent, failed, or skipped")
    error: str | None = Field(default=None, description="Error message on failure")
