"""Pytest configuration and fixtures for test suite."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from routers.dependencies import get_engine
from telemetry.models.sensor_data import DeviceMetadata, Location, Sensor, Thresholds
from telemetry.models.sensor_enum import SensorType
from telemetry.service_manager import TelemetryEngine

OWNER = "farmer-1"
OTHER_OWNER = "farmer-2"
START = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock: every call returns the current time, then moves it forward by `step`."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


def sensor_payload(sensor_id: str = "S1", sensor_type: str = "soil", min: float = 20, max: float = 80,
                   critical: float = 15, latitude: float = 48.85, longitude: float = 2.35) -> dict:
    return {
        "sensor_id": sensor_id,
        "sensor_type": sensor_type,
        "location": {"latitude": latitude, "longitude": longitude, "field_id": "north-field"},
        "thresholds": {"min": min, "max": max, "critical": critical},
        "metadata": {
            "manufacturer": "Acme Agro",
            "model": "SM-200",
            "firmware": "1.4.2",
            "installation_date": "2025-03-01T00:00:00Z",
            "last_calibration": "2025-09-01T00:00:00Z",
            "next_calibration": "2027-03-01T00:00:00Z",
        },
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(clock) -> TelemetryEngine:
    return TelemetryEngine(clock=clock)


@pytest.fixture
def payload_factory():
    return sensor_payload


@pytest.fixture
def registered_sensor(engine):
    return engine.register_sensor(sensor_payload("S1"), OWNER)


@pytest.fixture
def make_sensor():
    """Build a detached Sensor value for the pure scoring functions."""

    def _make(**overrides) -> Sensor:
        fields = dict(
            sensor_id="S1",
            sensor_type=SensorType.SOIL,
            location=Location(latitude=48.85, longitude=2.35),
            owner_id=OWNER,
            thresholds=Thresholds(min=20, max=80, critical=15),
            metadata=DeviceMetadata(
                manufacturer="Acme Agro",
                model="SM-200",
                firmware="1.4.2",
                installation_date=datetime(2025, 3, 1),
                last_calibration=datetime(2025, 9, 1),
                next_calibration=datetime(2027, 3, 1),
            ),
            created_at=START,
        )
        fields.update(overrides)
        return Sensor(**fields)

    return _make


@pytest.fixture
def client(engine):
    """TestClient whose requests all hit the `engine` fixture."""
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
