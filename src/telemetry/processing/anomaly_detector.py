"""
Local statistical anomaly detection over a window of readings.

Three independent passes run over the same window:
- spike: an interior point far above both its neighbours and the max threshold
- drop: an interior point far below both its neighbours and the min threshold
- trend: least-squares slope of value against sample index

No model or training data is involved. The multipliers and slope limits
below are calibration targets carried over unchanged, not derived values.
"""
from typing import List, Sequence

from telemetry.models.analysis_data import AnomalyFinding, AnomalyKind
from telemetry.models.sensor_data import Reading, Thresholds
from telemetry.models.sensor_enum import Severity

MIN_READINGS = 3
MIN_TREND_READINGS = 5

SPIKE_NEIGHBOR_RATIO = 2.0
SPIKE_THRESHOLD_FACTOR = 1.5
DROP_NEIGHBOR_RATIO = 0.5
DROP_THRESHOLD_FACTOR = 0.5
NEIGHBOR_CONFIDENCE = 85

TREND_SLOPE = 0.1
TREND_HIGH_SLOPE = 0.3
TREND_CONFIDENCE = 70


def least_squares_slope(values: Sequence[float]) -> float:
    """OLS slope of values against their indices 0..n-1."""
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_x2 = sum(i * i for i in range(n))
    denominator = n * sum_x2 - sum_x * sum_x
    return (n * sum_xy - sum_x * sum_y) / denominator


def detect_spikes(sensor_id: str, readings: Sequence[Reading], thresholds: Thresholds) -> List[AnomalyFinding]:
    findings: List[AnomalyFinding] = []
    spike_threshold = thresholds.max * SPIKE_THRESHOLD_FACTOR
    for i in range(1, len(readings) - 1):
        current = readings[i]
        avg_neighbors = (readings[i - 1].value + readings[i + 1].value) / 2
        if current.value > avg_neighbors * SPIKE_NEIGHBOR_RATIO and current.value > spike_threshold:
            findings.append(AnomalyFinding(
                sensor_id=sensor_id,
                metric=current.metric,
                anomaly_type=AnomalyKind.SPIKE,
                severity=Severity.CRITICAL if current.value > thresholds.critical else Severity.HIGH,
                description=f"Unusual spike in {current.metric} detected",
                timestamp=current.timestamp,
                expected_value=avg_neighbors,
                actual_value=current.value,
                confidence=NEIGHBOR_CONFIDENCE,
            ))
    return findings


def detect_drops(sensor_id: str, readings: Sequence[Reading], thresholds: Thresholds) -> List[AnomalyFinding]:
    findings: List[AnomalyFinding] = []
    drop_threshold = thresholds.min * DROP_THRESHOLD_FACTOR
    for i in range(1, len(readings) - 1):
        current = readings[i]
        avg_neighbors = (readings[i - 1].value + readings[i + 1].value) / 2
        if current.value < avg_neighbors * DROP_NEIGHBOR_RATIO and current.value < drop_threshold:
            findings.append(AnomalyFinding(
                sensor_id=sensor_id,
                metric=current.metric,
                anomaly_type=AnomalyKind.DROP,
                severity=Severity.CRITICAL if current.value < thresholds.critical else Severity.HIGH,
                description=f"Unusual drop in {current.metric} detected",
                timestamp=current.timestamp,
                expected_value=avg_neighbors,
                actual_value=current.value,
                confidence=NEIGHBOR_CONFIDENCE,
            ))
    return findings


def detect_trend(sensor_id: str, readings: Sequence[Reading]) -> List[AnomalyFinding]:
    """At most one finding covering the whole window."""
    if len(readings) < MIN_TREND_READINGS:
        return []

    values = [r.value for r in readings]
    slope = least_squares_slope(values)
    if abs(slope) <= TREND_SLOPE:
        return []

    direction = "increasing" if slope > 0 else "decreasing"
    return [AnomalyFinding(
        sensor_id=sensor_id,
        metric=readings[0].metric,
        anomaly_type=AnomalyKind.TREND,
        severity=Severity.HIGH if abs(slope) > TREND_HIGH_SLOPE else Severity.MEDIUM,
        description=f"Significant {direction} trend detected",
        timestamp=readings[-1].timestamp,
        expected_value=values[0],
        actual_value=values[-1],
        confidence=TREND_CONFIDENCE,
    )]


def detect_anomalies(sensor_id: str, readings: Sequence[Reading], thresholds: Thresholds) -> List[AnomalyFinding]:
    """
    Run all passes over `readings` (already cut to the analysis window).
    Findings come back spikes first, then drops, then the trend, unsorted otherwise.
    """
    if len(readings) < MIN_READINGS:
        return []
    return (
        detect_spikes(sensor_id, readings, thresholds)
        + detect_drops(sensor_id, readings, thresholds)
        + detect_trend(sensor_id, readings)
    )
