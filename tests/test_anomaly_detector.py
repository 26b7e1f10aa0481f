"""
Tests for spike, drop and trend detection
"""
from datetime import timedelta

import pytest

from conftest import START
from telemetry.models.analysis_data import AnomalyKind
from telemetry.models.sensor_data import Reading, Thresholds
from telemetry.models.sensor_enum import Severity
from telemetry.processing.anomaly_detector import (
    detect_anomalies, detect_drops, detect_spikes, detect_trend, least_squares_slope,
)

THRESHOLDS = Thresholds(min=20, max=80, critical=15)


def make_readings(values, metric="moisture"):
    return [
        Reading(timestamp=START + timedelta(minutes=i), value=v, unit="%", metric=metric)
        for i, v in enumerate(values)
    ]


class TestLeastSquaresSlope:

    def test_constant_series(self):
        assert least_squares_slope([5, 5, 5, 5]) == 0

    def test_linear_series(self):
        assert least_squares_slope([0, 1, 2, 3]) == pytest.approx(1.0)
        assert least_squares_slope([10, 8, 6, 4, 2]) == pytest.approx(-2.0)

    def test_short_series(self):
        assert least_squares_slope([]) == 0
        assert least_squares_slope([3]) == 0


class TestSpikes:
    """Test spike detection against neighbours and the max threshold"""

    def test_spike_detected(self):
        readings = make_readings([50, 150, 52])

        findings = detect_spikes("S1", readings, THRESHOLDS)

        assert len(findings) == 1
        spike = findings[0]
        assert spike.anomaly_type == AnomalyKind.SPIKE
        assert spike.actual_value == 150
        assert spike.expected_value == 51
        assert spike.timestamp == readings[1].timestamp
        assert spike.confidence == 85
        assert spike.description == "Unusual spike in moisture detected"
        # Literal comparison against the critical bound
        assert spike.severity == Severity.CRITICAL

    def test_spike_below_critical_is_high(self):
        findings = detect_spikes("S1", make_readings([50, 150, 52]), Thresholds(min=20, max=80, critical=200))

        assert findings[0].severity == Severity.HIGH

    def test_peak_below_max_factor_is_not_a_spike(self):
        # 110 doubles the neighbour average but stays under 1.5 * max
        assert detect_spikes("S1", make_readings([50, 110, 50]), THRESHOLDS) == []

    def test_moderate_peak_is_not_a_spike(self):
        assert detect_spikes("S1", make_readings([50, 95, 52]), THRESHOLDS) == []

    def test_edges_are_never_spikes(self):
        assert detect_spikes("S1", make_readings([500, 50, 50, 500]), THRESHOLDS) == []


class TestDrops:
    """Test drop detection against neighbours and the min threshold"""

    def test_drop_detected(self):
        readings = make_readings([40, 5, 40])

        findings = detect_drops("S1", readings, THRESHOLDS)

        assert len(findings) == 1
        drop = findings[0]
        assert drop.anomaly_type == AnomalyKind.DROP
        assert drop.expected_value == 40
        assert drop.actual_value == 5
        assert drop.severity == Severity.CRITICAL
        assert drop.description == "Unusual drop in moisture detected"

    def test_drop_above_critical_is_high(self):
        findings = detect_drops("S1", make_readings([40, 8, 40]), Thresholds(min=20, max=80, critical=5))

        assert findings[0].severity == Severity.HIGH

    def test_dip_above_min_factor_is_not_a_drop(self):
        # 15 is below half the neighbour average but not below 0.5 * min
        assert detect_drops("S1", make_readings([40, 15, 40]), THRESHOLDS) == []


class TestTrend:
    """Test least-squares trend detection"""

    def test_steep_increasing_trend(self):
        readings = make_readings([10 + 0.5 * i for i in range(10)])

        findings = detect_trend("S1", readings)

        assert len(findings) == 1
        trend = findings[0]
        assert trend.anomaly_type == AnomalyKind.TREND
        assert trend.severity == Severity.HIGH
        assert trend.description == "Significant increasing trend detected"
        assert trend.expected_value == 10
        assert trend.actual_value == 14.5
        assert trend.timestamp == readings[-1].timestamp
        assert trend.confidence == 70

    def test_moderate_decreasing_trend(self):
        findings = detect_trend("S1", make_readings([50 - 0.2 * i for i in range(10)]))

        assert len(findings) == 1
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].description == "Significant decreasing trend detected"

    def test_flat_series_has_no_trend(self):
        assert detect_trend("S1", make_readings([50 + 0.05 * i for i in range(10)])) == []

    def test_trend_needs_five_readings(self):
        assert detect_trend("S1", make_readings([10, 20, 30, 40])) == []


class TestDetectAnomalies:
    """Test the combined pass"""

    def test_fewer_than_three_readings(self):
        assert detect_anomalies("S1", [], THRESHOLDS) == []
        assert detect_anomalies("S1", make_readings([50, 500]), THRESHOLDS) == []

    def test_findings_ordered_spikes_drops_trend(self):
        readings = make_readings([50, 150, 50, 50, 5, 50])

        findings = detect_anomalies("S1", readings, THRESHOLDS)

        assert [f.anomaly_type for f in findings] == [AnomalyKind.SPIKE, AnomalyKind.DROP, AnomalyKind.TREND]
        assert findings[0].timestamp == readings[1].timestamp
        assert findings[1].timestamp == readings[4].timestamp

    def test_steady_window_is_quiet(self):
        assert detect_anomalies("S1", make_readings([50, 51, 50, 49, 50, 51]), THRESHOLDS) == []
