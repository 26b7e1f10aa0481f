"""Composite health score and rule-based maintenance prediction for a sensor."""
import math

from telemetry.models.analysis_data import MaintenancePrediction
from telemetry.models.sensor_data import Sensor
from telemetry.models.sensor_enum import SensorStatus, Severity

LOW_BATTERY = 20
POOR_SIGNAL = 30


def health_score(sensor: Sensor, low_battery: float = LOW_BATTERY, poor_signal: float = POOR_SIGNAL) -> int:
    """0-100 score; 100 is a healthy, quiet, fully charged sensor."""
    score = 100

    if sensor.battery_level < low_battery:
        score -= 30
    elif sensor.battery_level < 50:
        score -= 15

    if sensor.signal_strength < poor_signal:
        score -= 25
    elif sensor.signal_strength < 70:
        score -= 10

    if sensor.status == SensorStatus.ERROR:
        score -= 50
    elif sensor.status == SensorStatus.MAINTENANCE:
        score -= 20

    score -= 5 * len(sensor.unresolved_alerts())

    return max(0, score)


def predict_maintenance(sensor: Sensor, low_battery: float = LOW_BATTERY,
                        poor_signal: float = POOR_SIGNAL) -> MaintenancePrediction:
    """
    Deterministic rule cascade. The signal rule runs after the battery rule
    and overwrites the issue text; probability, time to failure, severity and
    confidence only ever move towards the worse value.
    """
    prediction = MaintenancePrediction(
        sensor_id=sensor.sensor_id,
        issue="No issues detected",
        probability=0,
        estimated_time_to_failure=365,
        severity=Severity.LOW,
        confidence=0,
    )

    if sensor.battery_level < low_battery:
        prediction.issue = "Low battery level"
        prediction.probability = 90
        prediction.estimated_time_to_failure = max(1, math.floor(sensor.battery_level * 0.5))
        prediction.severity = Severity.CRITICAL
        prediction.recommendations.append("Replace battery immediately")
        prediction.confidence = 95

    if sensor.signal_strength < poor_signal:
        prediction.issue = "Poor signal strength"
        prediction.probability = max(prediction.probability, 70)
        prediction.estimated_time_to_failure = min(prediction.estimated_time_to_failure, 30)
        if prediction.severity != Severity.CRITICAL:
            prediction.severity = Severity.HIGH
        prediction.recommendations.extend(["Check antenna connection", "Move sensor closer to gateway"])
        prediction.confidence = max(prediction.confidence, 85)

    return prediction
