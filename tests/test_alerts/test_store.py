"""Tests for the in-memory AlertStore."""

from datetime import timedelta

import pytest

from src.alerts.store import AlertStore
from tests.conftest import T0, make_alert


class TestHistoryRingBuffer:
    def test_accept_appends_processed_copy(self):
        store = AlertStore(max_history_size=10)
        alert = make_alert()

        entry = store.accept(alert, T0)

        assert store.active == [alert]
        assert store.history == [entry]
        assert entry.processed is True
        assert entry.processed_at == T0

    def test_evicts_oldest_at_capacity(self):
        store = AlertStore(max_history_size=1000)
        alerts = [make_alert(alert_type=f"custom_{i}") for i in range(1001)]

        for alert in alerts:
            store.accept(alert, T0)

        history = store.history
        assert len(history) == 1000
        assert history[0].alert_id == alerts[1].alert_id
        assert [a.alert_id for a in history] == [a.alert_id for a in alerts[1:]]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            AlertStore(max_history_size=0)

    def test_recent_history(self):
        store = AlertStore(max_history_size=10)
        for i in range(5):
            store.accept(make_alert(alert_type=f"t{i}"), T0)

        assert [a.type for a in store.recent_history(2)] == ["t3", "t4"]
        assert len(store.recent_history(100)) == 5
        assert store.recent_history(0) == []


class TestActiveList:
    def test_has_recent_within_window(self):
        store = AlertStore()
        store.accept(make_alert(timestamp=T0), T0)

        window = timedelta(minutes=5)
        assert store.has_recent("cpu_high", window, T0 + timedelta(minutes=4))
        assert not store.has_recent("cpu_high", window, T0 + timedelta(minutes=5))
        assert not store.has_recent("memory_high", window, T0)

    def test_prune_by_age(self):
        store = AlertStore()
        old = make_alert(alert_type="a", severity="critical", timestamp=T0 - timedelta(hours=25))
        recent = make_alert(alert_type="b", timestamp=T0 - timedelta(hours=23))
        store.accept(old, T0)
        store.accept(recent, T0)

        removed = store.prune_active(timedelta(hours=24), T0)

        assert removed == 1
        assert store.active == [recent]
        assert len(store.history) == 2

    def test_remove_active(self):
        store = AlertStore()
        alert = make_alert()
        store.accept(alert, T0)

        assert store.remove_active("missing") is None
        assert store.remove_active(alert.alert_id) == alert
        assert store.active == []
        assert len(store.history) == 1

    def test_active_is_snapshot(self):
        store = AlertStore()
        store.accept(make_alert(), T0)
        store.active.clear()
        assert len(store.active) == 1
