"""Pytest fixtures for alert engine tests."""

from datetime import datetime, timedelta, timezone

import pytest
from prometheus_client import CollectorRegistry

from src.alerts.channels import NotificationChannel
from src.alerts.config import AlertConfig, ThresholdConfig
from src.alerts.dispatcher import NotificationDispatcher
from src.alerts.schemas import Alert
from src.alerts.service import AlertService
from src.alerts.thresholds import ThresholdStore
from src.observability.metrics import AlertMetrics

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable replacement for ``datetime.now(timezone.utc)``."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingChannel(NotificationChannel):
    """Channel double that records what it was asked to send."""

    def __init__(
        self,
        name: str,
        configured: bool = True,
        succeed: bool = True,
        error: Exception | None = None,
    ) -> None:
        self._name = name
        self._configured = configured
        self._succeed = succeed
        self._error = error
        self.sent: list[Alert] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def send(self, alert: Alert) -> bool:
        self.sent.append(alert)
        if self._error is not None:
            raise self._error
        return self._succeed

    async def close(self) -> None:
        self.closed = True


def make_alert(
    alert_type: str = "cpu_high",
    severity: str = "warning",
    timestamp: datetime = T0,
    **kwargs,
) -> Alert:
    """Helper to create an Alert with sensible defaults."""
    return Alert(
        type=alert_type,
        severity=severity,
        message=kwargs.pop("message", "CPU usage too high: 95.00%"),
        value=kwargs.pop("value", 95.0),
        threshold=kwargs.pop("threshold", 80.0),
        timestamp=timestamp,
        **kwargs,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> AlertMetrics:
    """Metrics bound to a private registry so tests don't share counters."""
    return AlertMetrics(registry=CollectorRegistry())


@pytest.fixture
def threshold_config() -> ThresholdConfig:
    return ThresholdConfig(
        cpu=80.0,
        memory=85.0,
        disk=90.0,
        response_time=2000.0,
        error_rate=5.0,
        database=80.0,
    )


@pytest.fixture
def thresholds(threshold_config) -> ThresholdStore:
    return ThresholdStore(threshold_config)


@pytest.fixture
def channels() -> dict[str, RecordingChannel]:
    return {
        name: RecordingChannel(name)
        for name in ("email", "slack", "webhook", "sms")
    }


@pytest.fixture
def dispatcher(channels, metrics) -> NotificationDispatcher:
    return NotificationDispatcher(list(channels.values()), metrics=metrics)


@pytest.fixture
def service(dispatcher, thresholds, clock, metrics) -> AlertService:
    return AlertService(
        dispatcher=dispatcher,
        thresholds=thresholds,
        config=AlertConfig(max_history_size=1000, background_dispatch=False),
        clock=clock,
        metrics=metrics,
    )
