"""Tests for severity routing and per-channel failure isolation."""

import asyncio

import pytest

from src.alerts.dispatcher import (
    SEVERITY_ROUTES,
    NotificationConfig,
    NotificationDispatcher,
    build_channels,
)
from tests.conftest import RecordingChannel, make_alert


class TestRouting:
    def test_route_table(self):
        assert SEVERITY_ROUTES["critical"] == ("email", "slack", "webhook", "sms")
        assert SEVERITY_ROUTES["warning"] == ("email", "slack")
        assert SEVERITY_ROUTES["info"] == ()

    @pytest.mark.asyncio
    async def test_critical_goes_to_all_four(self, dispatcher, channels):
        report = await dispatcher.dispatch(make_alert(severity="critical"))

        assert report.succeeded == ["email", "slack", "webhook", "sms"]
        assert report.failed == []
        for ch in channels.values():
            assert len(ch.sent) == 1

    @pytest.mark.asyncio
    async def test_warning_goes_to_email_and_slack(self, dispatcher, channels):
        report = await dispatcher.dispatch(make_alert(severity="warning"))

        assert report.succeeded == ["email", "slack"]
        assert len(channels["email"].sent) == 1
        assert len(channels["slack"].sent) == 1
        assert channels["webhook"].sent == []
        assert channels["sms"].sent == []

    @pytest.mark.asyncio
    async def test_info_goes_nowhere(self, dispatcher, channels):
        report = await dispatcher.dispatch(make_alert(severity="info"))

        assert report.results == []
        assert all(ch.sent == [] for ch in channels.values())

    def test_unregistered_channel_in_route_ignored(self, metrics):
        dispatcher = NotificationDispatcher([RecordingChannel("email")], metrics=metrics)
        assert [ch.name for ch in dispatcher.route("critical")] == ["email"]


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_raising_channel_does_not_block_others(self, metrics):
        email = RecordingChannel("email", error=RuntimeError("smtp down"))
        slack = RecordingChannel("slack")
        webhook = RecordingChannel("webhook")
        sms = RecordingChannel("sms")
        dispatcher = NotificationDispatcher([email, slack, webhook, sms], metrics=metrics)

        report = await dispatcher.dispatch(make_alert(severity="critical"))

        assert report.failed == ["email"]
        assert report.succeeded == ["slack", "webhook", "sms"]
        failed = next(r for r in report.results if r.channel == "email")
        assert failed.error == "smtp down"
        assert len(slack.sent) == 1

    @pytest.mark.asyncio
    async def test_false_return_is_failure(self, metrics):
        email = RecordingChannel("email", succeed=False)
        slack = RecordingChannel("slack")
        dispatcher = NotificationDispatcher([email, slack], metrics=metrics)

        report = await dispatcher.dispatch(make_alert(severity="warning"))

        assert report.failed == ["email"]
        assert report.succeeded == ["slack"]

    @pytest.mark.asyncio
    async def test_unconfigured_channel_skipped(self, metrics):
        email = RecordingChannel("email", configured=False)
        slack = RecordingChannel("slack")
        dispatcher = NotificationDispatcher([email, slack], metrics=metrics)

        report = await dispatcher.dispatch(make_alert(severity="warning"))

        assert [r.status for r in report.results] == ["skipped", "sent"]
        assert report.attempted == ["slack"]
        assert email.sent == []

    @pytest.mark.asyncio
    async def test_all_channels_failing(self, metrics):
        dispatcher = NotificationDispatcher(
            [
                RecordingChannel("email", error=OSError("boom")),
                RecordingChannel("slack", succeed=False),
            ],
            metrics=metrics,
        )

        report = await dispatcher.dispatch(make_alert(severity="warning"))

        assert report.succeeded == []
        assert report.failed == ["email", "slack"]


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_channels_run_concurrently(self, metrics):
        """A slow channel must not delay a fast one from starting."""
        slack_started = asyncio.Event()

        class SlowEmail(RecordingChannel):
            async def send(self, alert):
                await asyncio.wait_for(slack_started.wait(), timeout=1.0)
                return await super().send(alert)

        class SignallingSlack(RecordingChannel):
            async def send(self, alert):
                slack_started.set()
                return await super().send(alert)

        dispatcher = NotificationDispatcher(
            [SlowEmail("email"), SignallingSlack("slack")],
            metrics=metrics,
        )

        report = await dispatcher.dispatch(make_alert(severity="warning"))

        assert report.succeeded == ["email", "slack"]


class TestSendToChannel:
    @pytest.mark.asyncio
    async def test_bypasses_routing(self, dispatcher, channels):
        result = await dispatcher.send_to_channel("sms", make_alert(severity="info"))

        assert result.status == "sent"
        assert len(channels["sms"].sent) == 1

    @pytest.mark.asyncio
    async def test_unknown_channel(self, dispatcher):
        with pytest.raises(KeyError):
            await dispatcher.send_to_channel("pager", make_alert())


class TestMetrics:
    @pytest.mark.asyncio
    async def test_notifications_counted(self, dispatcher, metrics):
        await dispatcher.dispatch(make_alert(severity="warning"))

        sample = metrics.notifications.labels(channel="email", status="sent")
        assert sample._value.get() == 1.0


@pytest.mark.asyncio
async def test_close_closes_every_channel(dispatcher, channels):
    await dispatcher.close()
    assert all(ch.closed for ch in channels.values())


def test_build_channels_from_config():
    config = NotificationConfig(
        smtp_host="smtp.test",
        alert_email_to="ops@test",
        slack_webhook_url=None,
        alert_webhook_url="https://example.com/hook",
    )

    built = {ch.name: ch for ch in build_channels(config)}

    assert set(built) == {"email", "slack", "webhook", "sms"}
    assert built["email"].is_configured
    assert not built["slack"].is_configured
    assert built["webhook"].is_configured
    assert built["sms"].is_configured
