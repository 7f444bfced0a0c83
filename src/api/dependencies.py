"""
Dependency injection for FastAPI endpoints.
"""

import structlog

from src.alerts.config import AlertConfig, ThresholdConfig
from src.alerts.dispatcher import NotificationConfig, NotificationDispatcher
from src.alerts.service import AlertService
from src.alerts.thresholds import ThresholdStore

logger = structlog.get_logger(__name__)

# Process-wide engine instance (initialized on first request)
_alert_service: AlertService | None = None


def build_alert_service() -> AlertService:
    """Assemble an AlertService from environment configuration."""
    return AlertService(
        dispatcher=NotificationDispatcher.from_config(NotificationConfig()),
        thresholds=ThresholdStore(ThresholdConfig()),
        config=AlertConfig(),
    )


async def get_alert_service() -> AlertService:
    """
    Get the alert engine instance.

    Alert state is in-memory, so every request must see the same instance.
    """
    global _alert_service

    if _alert_service is None:
        _alert_service = build_alert_service()
        logger.info("Alert service initialized")

    return _alert_service


async def cleanup_dependencies() -> None:
    """Drain pending notifications and release the engine."""
    global _alert_service

    if _alert_service is not None:
        await _alert_service.aclose()
        _alert_service = None
