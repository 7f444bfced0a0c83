"""Notification dispatcher fanning an alert out to severity-routed channels.

Each routed channel is attempted as an independent asyncio task; an
exception or failed delivery in one channel is captured into that
channel's result and never prevents the others from running. There are
no retries. Notification failures never roll back alert acceptance.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.alerts.channels import (
    EmailChannel,
    NotificationChannel,
    SlackChannel,
    SmsChannel,
    WebhookChannel,
)
from src.alerts.schemas import Alert
from src.observability.metrics import AlertMetrics, get_metrics

logger = logging.getLogger(__name__)

ChannelStatus = Literal["sent", "failed", "skipped"]

SEVERITY_ROUTES: dict[str, tuple[str, ...]] = {
    "critical": ("email", "slack", "webhook", "sms"),
    "warning": ("email", "slack"),
    "info": (),
}


class NotificationConfig(BaseSettings):
    """Channel credentials and endpoints, read from the environment."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    smtp_host: str | None = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_secure: bool = Field(
        default=False,
        description="Use implicit TLS instead of STARTTLS",
    )
    smtp_user: str | None = None
    smtp_pass: SecretStr | None = None
    alert_email_to: str | None = Field(
        default=None,
        description="Recipient address for alert emails",
    )
    alert_email_from: str = "alerts@cardstrategy.com"
    slack_webhook_url: str | None = None
    alert_webhook_url: str | None = None
    notify_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for SMTP and webhook delivery",
    )


def build_channels(config: NotificationConfig) -> list[NotificationChannel]:
    """Create the standard channel set from configuration."""
    return [
        EmailChannel(
            host=config.smtp_host,
            recipient=config.alert_email_to,
            port=config.smtp_port,
            secure=config.smtp_secure,
            username=config.smtp_user,
            password=config.smtp_pass.get_secret_value() if config.smtp_pass else None,
            sender=config.alert_email_from,
            timeout=config.notify_timeout_seconds,
        ),
        SlackChannel(
            webhook_url=config.slack_webhook_url,
            timeout=config.notify_timeout_seconds,
        ),
        WebhookChannel(
            url=config.alert_webhook_url,
            timeout=config.notify_timeout_seconds,
        ),
        SmsChannel(),
    ]


@dataclass
class ChannelResult:
    """Outcome of one channel attempt."""

    channel: str
    status: ChannelStatus
    error: str | None = None


@dataclass
class DispatchReport:
    """Aggregated outcome of dispatching one alert."""

    alert_id: str
    severity: str
    results: list[ChannelResult] = field(default_factory=list)

    @property
    def attempted(self) -> list[str]:
        return [r.channel for r in self.results if r.status != "skipped"]

    @property
    def succeeded(self) -> list[str]:
        return [r.channel for r in self.results if r.status == "sent"]

    @property
    def failed(self) -> list[str]:
        return [r.channel for r in self.results if r.status == "failed"]


class NotificationDispatcher:
    """Routes alerts to channels by severity.

    Channels are looked up by ``name``; a route naming a channel that is
    not registered is ignored.
    """

    def __init__(
        self,
        channels: list[NotificationChannel],
        routes: dict[str, tuple[str, ...]] | None = None,
        metrics: AlertMetrics | None = None,
    ) -> None:
        self._channels: dict[str, NotificationChannel] = {
            ch.name: ch for ch in channels
        }
        self._routes = routes or SEVERITY_ROUTES
        self._metrics = metrics or get_metrics()

    @classmethod
    def from_config(cls, config: NotificationConfig | None = None) -> "NotificationDispatcher":
        return cls(build_channels(config or NotificationConfig()))

    @property
    def channels(self) -> dict[str, NotificationChannel]:
        """Registered channels keyed by name."""
        return dict(self._channels)

    def route(self, severity: str) -> list[NotificationChannel]:
        """Channels an alert of this severity is sent to."""
        names = self._routes.get(severity, ())
        return [self._channels[n] for n in names if n in self._channels]

    async def dispatch(self, alert: Alert) -> DispatchReport:
        """Send an alert to every channel routed for its severity.

        Args:
            alert: Alert to deliver.

        Returns:
            Per-channel results.
        """
        report = DispatchReport(alert_id=alert.alert_id, severity=alert.severity)
        channels = self.route(alert.severity)
        if not channels:
            return report

        tasks = [
            asyncio.create_task(
                self._attempt(channel, alert),
                name=f"notify_{channel.name}",
            )
            for channel in channels
        ]
        report.results = list(await asyncio.gather(*tasks))

        self._record_delivery(alert, report)
        return report

    async def send_to_channel(self, channel_name: str, alert: Alert) -> ChannelResult:
        """Send an alert to one named channel, bypassing severity routing.

        Raises:
            KeyError: If no channel with that name is registered.
        """
        channel = self._channels[channel_name]
        result = await self._attempt(channel, alert)
        self._metrics.record_notification(result.channel, result.status)
        return result

    async def _attempt(self, channel: NotificationChannel, alert: Alert) -> ChannelResult:
        """Run one channel, capturing any exception as a failed result."""
        if not channel.is_configured:
            return ChannelResult(channel=channel.name, status="skipped")

        try:
            success = await channel.send(alert)
        except Exception as e:
            logger.error(
                "Channel %s raised while sending alert %s: %s",
                channel.name, alert.alert_id, e,
                exc_info=True,
            )
            return ChannelResult(channel=channel.name, status="failed", error=str(e))

        if success:
            return ChannelResult(channel=channel.name, status="sent")
        return ChannelResult(channel=channel.name, status="failed")

    def _record_delivery(self, alert: Alert, report: DispatchReport) -> None:
        """Log and count delivery results."""
        for result in report.results:
            self._metrics.record_notification(result.channel, result.status)

        successes = report.succeeded
        failures = report.failed

        if failures and not successes:
            logger.error(
                "Alert %s (%s) failed ALL channels: %s",
                alert.alert_id, alert.severity, failures,
            )
        elif failures:
            logger.warning(
                "Alert %s partial delivery: ok=%s failed=%s",
                alert.alert_id, successes, failures,
            )
        else:
            logger.debug(
                "Alert %s delivered: %s", alert.alert_id, successes,
            )

    async def close(self) -> None:
        for channel in self._channels.values():
            try:
                await channel.close()
            except Exception as e:
                logger.warning("Failed to close channel %s: %s", channel.name, e)
