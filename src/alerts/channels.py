"""Notification channel implementations for alert delivery.

Provides an ABC for notification channels plus concrete implementations
for SMTP email, Slack-compatible chat webhooks, generic JSON webhooks,
and an SMS stub that only logs. A channel whose configuration is missing
reports ``is_configured = False`` and is skipped by the dispatcher.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.message import EmailMessage
from html import escape as html_escape

import aiosmtplib
import httpx

from src.alerts.schemas import Alert

logger = logging.getLogger(__name__)

SERVICE_NAME = "cardstrategy"

_SEVERITY_COLORS: dict[str, str] = {
    "critical": "#ff0000",
    "warning": "#ffa500",
}
_DEFAULT_COLOR = "#439fe0"


def _format_time(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _format_number(value: float) -> str:
    return f"{value:g}"


class NotificationChannel(ABC):
    """Abstract base for notification delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel (e.g. 'email', 'slack')."""

    @property
    def is_configured(self) -> bool:
        """Whether the channel has the settings it needs to deliver."""
        return True

    @abstractmethod
    async def send(self, alert: Alert) -> bool:
        """Deliver an alert through this channel.

        Args:
            alert: Alert to deliver.

        Returns:
            True if delivery succeeded, False otherwise.
        """

    async def close(self) -> None:
        """Release any held resources."""


class EmailChannel(NotificationChannel):
    """Delivers alerts as HTML email over SMTP.

    Opens a new SMTP connection per message via ``aiosmtplib.send``.
    ``secure`` selects implicit TLS; otherwise STARTTLS is used when the
    server offers it.
    """

    def __init__(
        self,
        host: str | None,
        recipient: str | None,
        port: int = 587,
        secure: bool = False,
        username: str | None = None,
        password: str | None = None,
        sender: str = "alerts@cardstrategy.com",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._secure = secure
        self._username = username
        self._password = password
        self._sender = sender
        self._recipient = recipient
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "email"

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._recipient)

    def _build_subject(self, alert: Alert) -> str:
        return f"[{alert.severity.upper()}] CardStrategy system alert"

    def _render_html(self, alert: Alert) -> str:
        """Render the summary table body for an alert."""
        color = _SEVERITY_COLORS.get(alert.severity, _DEFAULT_COLOR)
        rows = [
            ("Alert type", alert.type),
            ("Severity", alert.severity),
            ("Message", alert.message),
            ("Current value", _format_number(alert.value)),
            ("Threshold", _format_number(alert.threshold)),
            ("Time", _format_time(alert.timestamp)),
        ]
        cell = "padding: 10px; border: 1px solid #ddd;"
        table_rows = "\n".join(
            f'<tr><td style="{cell} font-weight: bold;">{html_escape(label)}:</td>'
            f'<td style="{cell}">{html_escape(value)}</td></tr>'
            for label, value in rows
        )
        return (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            f'<div style="background-color: {color}; color: white; padding: 20px; text-align: center;">'
            f"<h1>{html_escape(alert.severity.upper())} alert</h1></div>"
            '<div style="padding: 20px; border: 1px solid #ddd;">'
            "<h2>Alert details</h2>"
            f'<table style="width: 100%; border-collapse: collapse;">{table_rows}</table>'
            "</div>"
            '<div style="padding: 20px; background-color: #f9f9f9; text-align: center;">'
            "<p>Please check system status and take action.</p>"
            "<p>Sent automatically by the CardStrategy monitoring system.</p>"
            "</div></div>"
        )

    def _build_message(self, alert: Alert) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = self._recipient
        msg["Subject"] = self._build_subject(alert)
        msg.set_content(f"{alert.severity.upper()}: {alert.message}")
        msg.add_alternative(self._render_html(alert), subtype="html")
        return msg

    async def send(self, alert: Alert) -> bool:
        message = self._build_message(alert)
        try:
            await aiosmtplib.send(
                message,
                hostname=self._host,
                port=self._port,
                username=self._username or None,
                password=self._password or None,
                use_tls=self._secure,
                timeout=self._timeout,
            )
            logger.info("Email alert sent for %s: %s", alert.type, alert.message)
            return True
        except aiosmtplib.SMTPException as e:
            logger.warning(
                "SMTP %s rejected alert %s: %s", self._host, alert.alert_id, e,
            )
            return False
        except OSError as e:
            logger.warning(
                "SMTP %s unreachable for alert %s: %s", self._host, alert.alert_id, e,
            )
            return False


class SlackChannel(NotificationChannel):
    """Delivers alerts to a Slack incoming webhook.

    Uses a legacy attachment with a severity colour bar and one field
    per alert attribute.
    """

    def __init__(self, webhook_url: str | None, timeout: float = 10.0) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "slack"

    @property
    def is_configured(self) -> bool:
        return bool(self._webhook_url)

    def _format_message(self, alert: Alert) -> dict:
        """Build the attachment payload from an alert."""
        color = _SEVERITY_COLORS.get(alert.severity, _DEFAULT_COLOR)
        return {
            "text": f":rotating_light: *{alert.severity.upper()} alert*",
            "attachments": [
                {
                    "color": color,
                    "fields": [
                        {"title": "Alert type", "value": alert.type, "short": True},
                        {"title": "Severity", "value": alert.severity, "short": True},
                        {"title": "Message", "value": alert.message, "short": False},
                        {
                            "title": "Current value",
                            "value": _format_number(alert.value),
                            "short": True,
                        },
                        {
                            "title": "Threshold",
                            "value": _format_number(alert.threshold),
                            "short": True,
                        },
                        {
                            "title": "Time",
                            "value": _format_time(alert.timestamp),
                            "short": False,
                        },
                    ],
                },
            ],
        }

    async def send(self, alert: Alert) -> bool:
        payload = self._format_message(alert)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._webhook_url, json=payload)
                if resp.is_success:
                    logger.info("Slack alert sent for %s", alert.type)
                    return True
                logger.warning(
                    "Slack webhook returned %d for alert %s",
                    resp.status_code, alert.alert_id,
                )
                return False
        except httpx.TimeoutException:
            logger.warning(
                "Slack webhook timed out for alert %s", alert.alert_id,
            )
            return False
        except httpx.HTTPError as e:
            logger.warning(
                "Slack webhook failed for alert %s: %s", alert.alert_id, e,
            )
            return False


class WebhookChannel(NotificationChannel):
    """Delivers alerts as JSON POST to an arbitrary HTTP endpoint.

    Creates a new ``httpx.AsyncClient`` per call (short-lived, no pooling).
    """

    def __init__(
        self,
        url: str | None,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        service: str = SERVICE_NAME,
    ) -> None:
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._service = service

    @property
    def name(self) -> str:
        return "webhook"

    @property
    def is_configured(self) -> bool:
        return bool(self._url)

    def _build_payload(self, alert: Alert) -> dict:
        return {
            "alert": alert.to_dict(),
            "severity": alert.severity,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self._service,
        }

    async def send(self, alert: Alert) -> bool:
        payload = self._build_payload(alert)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers=self._headers,
                )
                if resp.is_success:
                    logger.info("Webhook alert sent for %s", alert.type)
                    return True
                logger.warning(
                    "Webhook %s returned %d for alert %s",
                    self._url, resp.status_code, alert.alert_id,
                )
                return False
        except httpx.TimeoutException:
            logger.warning(
                "Webhook %s timed out for alert %s",
                self._url, alert.alert_id,
            )
            return False
        except httpx.HTTPError as e:
            logger.warning(
                "Webhook %s failed for alert %s: %s",
                self._url, alert.alert_id, e,
            )
            return False


class SmsChannel(NotificationChannel):
    """SMS placeholder: logs the alert, no provider is wired in."""

    @property
    def name(self) -> str:
        return "sms"

    async def send(self, alert: Alert) -> bool:
        logger.info(
            "SMS delivery not implemented, logged %s alert: %s",
            alert.severity, alert.message,
        )
        return True
