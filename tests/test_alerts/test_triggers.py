"""Tests for stateless metric trigger functions."""

import pytest

from src.alerts.triggers import (
    check_all_metrics,
    check_metric,
    classify_severity,
    extract_metric_value,
    format_metric_message,
)
from tests.conftest import T0

DEFAULT_THRESHOLDS = {
    "cpu": 80.0,
    "memory": 85.0,
    "disk": 90.0,
    "response_time": 2000.0,
    "error_rate": 5.0,
    "database": 80.0,
}


# ── classify_severity ────────────────────────────────────


class TestClassifySeverity:
    """Ratio boundaries: >= 1.2 critical, [1.0, 1.2) warning, < 1.0 info."""

    @pytest.mark.parametrize(
        "value,threshold,expected",
        [
            (96.0, 80.0, "critical"),   # exactly 1.2
            (100.0, 80.0, "critical"),
            (95.0, 80.0, "warning"),
            (80.0, 80.0, "warning"),    # exactly 1.0
            (95.99, 80.0, "warning"),
            (79.99, 80.0, "info"),
            (0.0, 80.0, "info"),
            (2400.0, 2000.0, "critical"),
            (6.0, 5.0, "critical"),
            (5.5, 5.0, "warning"),
        ],
    )
    def test_boundaries(self, value, threshold, expected):
        assert classify_severity(value, threshold) == expected

    def test_deterministic(self):
        assert classify_severity(90.0, 80.0) == classify_severity(90.0, 80.0)


# ── extract_metric_value ─────────────────────────────────


class TestExtractMetricValue:
    def test_bare_number(self):
        assert extract_metric_value({"cpu": 95}, "cpu") == 95.0

    def test_nested_reading(self):
        snapshot = {
            "cpu": {"usage": 91.5},
            "responseTime": {"average": 2500},
            "errorRate": {"percentage": 7.25},
            "database": {"connectionUsage": 88},
        }
        assert extract_metric_value(snapshot, "cpu") == 91.5
        assert extract_metric_value(snapshot, "response_time") == 2500.0
        assert extract_metric_value(snapshot, "error_rate") == 7.25
        assert extract_metric_value(snapshot, "database") == 88.0

    def test_snake_case_keys(self):
        snapshot = {"response_time": {"average": 10}, "database": {"connection_usage": 3}}
        assert extract_metric_value(snapshot, "response_time") == 10.0
        assert extract_metric_value(snapshot, "database") == 3.0

    def test_absent_dimension(self):
        assert extract_metric_value({"memory": 50}, "cpu") is None

    def test_none_and_non_numeric(self):
        assert extract_metric_value({"cpu": None}, "cpu") is None
        assert extract_metric_value({"cpu": "95"}, "cpu") is None
        assert extract_metric_value({"cpu": True}, "cpu") is None
        assert extract_metric_value({"cpu": {"load": 3}}, "cpu") is None

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, raw):
        assert extract_metric_value({"cpu": raw}, "cpu") is None
        assert extract_metric_value({"cpu": {"usage": raw}}, "cpu") is None


# ── check_metric ─────────────────────────────────────────


class TestCheckMetric:
    def test_warning_alert(self):
        alert = check_metric("cpu", {"cpu": {"usage": 95}}, 80.0, now=T0)

        assert alert is not None
        assert alert.type == "cpu_high"
        assert alert.severity == "warning"
        assert "95.00%" in alert.message
        assert alert.value == 95.0
        assert alert.threshold == 80.0
        assert alert.timestamp == T0
        assert alert.manual is False

    def test_critical_alert(self):
        alert = check_metric("cpu", {"cpu": {"usage": 100}}, 80.0, now=T0)
        assert alert is not None
        assert alert.severity == "critical"

    def test_equal_to_threshold_does_not_fire(self):
        assert check_metric("cpu", {"cpu": 80}, 80.0) is None

    def test_below_threshold_does_not_fire(self):
        assert check_metric("memory", {"memory": {"usage": 50}}, 85.0) is None

    def test_absent_dimension_does_not_fire(self):
        assert check_metric("disk", {"cpu": 99}, 90.0) is None

    @pytest.mark.parametrize("raw", [float("nan"), float("inf")])
    def test_non_finite_reading_does_not_fire(self, raw):
        assert check_metric("cpu", {"cpu": {"usage": raw}}, 80.0) is None

    def test_response_time_unit(self):
        alert = check_metric("response_time", {"responseTime": {"average": 2500}}, 2000.0)
        assert alert is not None
        assert alert.type == "response_time_high"
        assert alert.message.endswith("2500.00ms")

    def test_database_type(self):
        alert = check_metric("database", {"database": {"connectionUsage": 90}}, 80.0)
        assert alert is not None
        assert alert.type == "database_high"


# ── check_all_metrics ────────────────────────────────────


class TestCheckAllMetrics:
    def test_fixed_dimension_order(self):
        snapshot = {
            "database": {"connectionUsage": 99},
            "errorRate": {"percentage": 9},
            "responseTime": {"average": 5000},
            "disk": {"usage": 99},
            "memory": {"usage": 99},
            "cpu": {"usage": 99},
        }
        alerts = check_all_metrics(snapshot, DEFAULT_THRESHOLDS, now=T0)

        assert [a.type for a in alerts] == [
            "cpu_high",
            "memory_high",
            "disk_high",
            "response_time_high",
            "error_rate_high",
            "database_high",
        ]

    def test_empty_snapshot(self):
        assert check_all_metrics({}, DEFAULT_THRESHOLDS) == []

    def test_only_exceeding_dimensions(self):
        alerts = check_all_metrics(
            {"cpu": {"usage": 50}, "disk": {"usage": 95}},
            DEFAULT_THRESHOLDS,
        )
        assert [a.type for a in alerts] == ["disk_high"]


def test_format_metric_message():
    assert format_metric_message("cpu", 95) == "CPU usage too high: 95.00%"
    assert format_metric_message("response_time", 2100.456) == "API response time too high: 2100.46ms"
