"""Tests for AlertScheduler."""

import asyncio

import pytest

from src.alerts.scheduler import AlertScheduler


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_sync_snapshot_fn(self, service):
        scheduler = AlertScheduler(service, lambda: {"cpu": {"usage": 95}})

        alerts = await scheduler.run_once()

        assert [a.type for a in alerts] == ["cpu_high"]
        assert scheduler.ticks == 1

    @pytest.mark.asyncio
    async def test_async_snapshot_fn(self, service):
        async def collect():
            return {"memory": {"usage": 99}}

        scheduler = AlertScheduler(service, collect)

        alerts = await scheduler.run_once()

        assert [a.type for a in alerts] == ["memory_high"]


class TestLoop:
    @pytest.mark.asyncio
    async def test_runs_until_stopped(self, service):
        calls = []

        def collect():
            calls.append(1)
            if len(calls) >= 3:
                scheduler.stop()
            return {"cpu": 10}

        scheduler = AlertScheduler(service, collect, interval_seconds=0.01)

        await asyncio.wait_for(scheduler.start(), timeout=2.0)

        assert scheduler.ticks == 3
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_collector_errors_do_not_stop_loop(self, service):
        calls = []

        def collect():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("collector down")
            scheduler.stop()
            return {"cpu": 95}

        scheduler = AlertScheduler(service, collect, interval_seconds=0.01)

        await asyncio.wait_for(scheduler.start(), timeout=2.0)

        assert len(calls) == 2
        assert scheduler.ticks == 1
        assert len(service.store.active) == 1
