"""
Tests for the health score and maintenance prediction
"""
import pytest

from conftest import START
from telemetry.models.sensor_data import Alert
from telemetry.models.sensor_enum import AlertType, SensorStatus, Severity
from telemetry.processing.health_scorer import health_score, predict_maintenance


def _alert(resolved=False):
    return Alert(type=AlertType.THRESHOLD, message="Value out of range", severity=Severity.HIGH,
                 timestamp=START, resolved=resolved)


class TestHealthScore:

    def test_healthy_sensor(self, make_sensor):
        assert health_score(make_sensor()) == 100

    @pytest.mark.parametrize("overrides, expected", [
        ({"battery_level": 10}, 70),
        ({"battery_level": 40}, 85),
        ({"battery_level": 50}, 100),
        ({"signal_strength": 20}, 75),
        ({"signal_strength": 60}, 90),
        ({"signal_strength": 70}, 100),
        ({"status": SensorStatus.ERROR}, 50),
        ({"status": SensorStatus.MAINTENANCE}, 80),
        ({"status": SensorStatus.INACTIVE}, 100),
    ])
    def test_deductions(self, make_sensor, overrides, expected):
        assert health_score(make_sensor(**overrides)) == expected

    def test_unresolved_alerts_deduct_five_each(self, make_sensor):
        sensor = make_sensor(alerts=[_alert(), _alert(), _alert(), _alert(resolved=True)])

        assert health_score(sensor) == 85

    def test_score_floors_at_zero(self, make_sensor):
        sensor = make_sensor(battery_level=0, signal_strength=0, status=SensorStatus.ERROR,
                             alerts=[_alert() for _ in range(10)])

        assert health_score(sensor) == 0

    def test_score_never_rises_as_battery_drains(self, make_sensor):
        scores = [health_score(make_sensor(battery_level=level)) for level in range(100, -1, -1)]

        assert scores == sorted(scores, reverse=True)
        assert all(0 <= s <= 100 for s in scores)

    def test_score_never_rises_as_signal_weakens(self, make_sensor):
        scores = [health_score(make_sensor(signal_strength=level)) for level in range(100, -1, -1)]

        assert scores == sorted(scores, reverse=True)
        assert all(0 <= s <= 100 for s in scores)

    def test_configured_levels(self, make_sensor):
        sensor = make_sensor(battery_level=22, signal_strength=35)

        assert health_score(sensor) == 75
        assert health_score(sensor, low_battery=25, poor_signal=40) == 45
        assert predict_maintenance(sensor).issue == "No issues detected"
        assert predict_maintenance(sensor, low_battery=25).issue == "Low battery level"


class TestPredictMaintenance:

    def test_healthy_sensor(self, make_sensor):
        prediction = predict_maintenance(make_sensor())

        assert prediction.issue == "No issues detected"
        assert prediction.probability == 0
        assert prediction.estimated_time_to_failure == 365
        assert prediction.severity == Severity.LOW
        assert prediction.recommendations == []
        assert prediction.confidence == 0

    def test_low_battery(self, make_sensor):
        prediction = predict_maintenance(make_sensor(battery_level=10))

        assert prediction.issue == "Low battery level"
        assert prediction.probability == 90
        assert prediction.estimated_time_to_failure == 5
        assert prediction.severity == Severity.CRITICAL
        assert prediction.recommendations == ["Replace battery immediately"]
        assert prediction.confidence == 95

    @pytest.mark.parametrize("battery, days", [(19.9, 9), (3, 1), (1, 1), (0, 1)])
    def test_time_to_failure_from_battery(self, make_sensor, battery, days):
        assert predict_maintenance(make_sensor(battery_level=battery)).estimated_time_to_failure == days

    def test_poor_signal(self, make_sensor):
        prediction = predict_maintenance(make_sensor(battery_level=90, signal_strength=10))

        assert prediction.issue == "Poor signal strength"
        assert prediction.probability == 70
        assert prediction.estimated_time_to_failure == 30
        assert prediction.severity == Severity.HIGH
        assert prediction.recommendations == ["Check antenna connection", "Move sensor closer to gateway"]
        assert prediction.confidence == 85

    def test_both_rules_fire(self, make_sensor):
        prediction = predict_maintenance(make_sensor(battery_level=10, signal_strength=10))

        # Signal rule names the issue, the battery rule keeps the worse figures
        assert prediction.issue == "Poor signal strength"
        assert prediction.probability == 90
        assert prediction.estimated_time_to_failure == 5
        assert prediction.severity == Severity.CRITICAL
        assert prediction.confidence == 95
        assert prediction.recommendations == [
            "Replace battery immediately", "Check antenna connection", "Move sensor closer to gateway",
        ]

    def test_boundaries_are_not_low(self, make_sensor):
        prediction = predict_maintenance(make_sensor(battery_level=20, signal_strength=30))

        assert prediction.issue == "No issues detected"
