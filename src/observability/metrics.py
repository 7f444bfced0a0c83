"""
Prometheus metrics for the alert engine.

Defines and exposes metrics for:
- Alert evaluation outcomes (accepted vs deduplicated)
- Notification delivery per channel
- Active list and history sizes

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)


class AlertMetrics:
    """
    Prometheus metrics collector for the alert engine.

    Usage:
        metrics = AlertMetrics()
        metrics.start_server()

        metrics.record_alert("cpu_high", "warning", "accepted")
        metrics.record_notification("email", "sent")
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize Prometheus metrics."""
        self._registry = registry or REGISTRY

        self.alerts_evaluated = Counter(
            "cardstrategy_alerts_evaluated_total",
            "Alerts passed through intake",
            ["type", "severity", "outcome"],  # outcome: accepted, deduplicated
            registry=self._registry,
        )

        self.notifications = Counter(
            "cardstrategy_alert_notifications_total",
            "Notification channel attempts",
            ["channel", "status"],  # status: sent, failed, skipped
            registry=self._registry,
        )

        self.active_alerts = Gauge(
            "cardstrategy_active_alerts",
            "Alerts currently in the active list",
            registry=self._registry,
        )

        self.history_size = Gauge(
            "cardstrategy_alert_history_size",
            "Entries held in the alert history buffer",
            registry=self._registry,
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=self._registry)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_alert(self, alert_type: str, severity: str, outcome: str) -> None:
        self.alerts_evaluated.labels(
            type=alert_type, severity=severity, outcome=outcome,
        ).inc()

    def record_notification(self, channel: str, status: str) -> None:
        self.notifications.labels(channel=channel, status=status).inc()

    def set_store_sizes(self, active: int, history: int) -> None:
        self.active_alerts.set(active)
        self.history_size.set(history)


# Global metrics instance
_metrics: AlertMetrics | None = None


def get_metrics() -> AlertMetrics:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = AlertMetrics()
    return _metrics
