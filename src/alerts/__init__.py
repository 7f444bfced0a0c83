"""Metric-driven alert engine.

Components:
- Alert: Immutable alert record
- ThresholdConfig / AlertConfig: Pydantic settings for thresholds and engine options
- ThresholdStore: Live per-dimension thresholds
- AlertStore: Active list plus bounded history
- classify_severity / check_metric / check_all_metrics: Stateless trigger functions
- NotificationChannel / EmailChannel / SlackChannel / WebhookChannel / SmsChannel: Delivery channels
- NotificationConfig / NotificationDispatcher: Severity-routed fan-out
- AlertService: Orchestrator for evaluation, dedup, storage, and dispatch
- AlertScheduler: Periodic snapshot evaluation
"""

from src.alerts.channels import (
    EmailChannel,
    NotificationChannel,
    SlackChannel,
    SmsChannel,
    WebhookChannel,
)
from src.alerts.config import AlertConfig, ThresholdConfig
from src.alerts.dispatcher import (
    ChannelResult,
    DispatchReport,
    NotificationConfig,
    NotificationDispatcher,
)
from src.alerts.scheduler import AlertScheduler
from src.alerts.schemas import (
    METRIC_DIMENSIONS,
    VALID_SEVERITIES,
    Alert,
    Severity,
)
from src.alerts.service import AlertService
from src.alerts.store import AlertStore
from src.alerts.thresholds import ThresholdStore
from src.alerts.triggers import check_all_metrics, check_metric, classify_severity

__all__ = [
    "Alert",
    "AlertConfig",
    "AlertScheduler",
    "AlertService",
    "AlertStore",
    "ChannelResult",
    "DispatchReport",
    "EmailChannel",
    "METRIC_DIMENSIONS",
    "NotificationChannel",
    "NotificationConfig",
    "NotificationDispatcher",
    "Severity",
    "SlackChannel",
    "SmsChannel",
    "ThresholdConfig",
    "ThresholdStore",
    "VALID_SEVERITIES",
    "WebhookChannel",
    "check_all_metrics",
    "check_metric",
    "classify_severity",
]
