"""
Persistence boundary for sensors.

The engine only talks to `SensorRepository`; `InMemorySensorRepository` is
the implementation shipped with the service and used by the tests.
"""
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from telemetry.errors import DuplicateSensorIdError, NotFoundError
from telemetry.models.sensor_data import Sensor
from telemetry.models.sensor_enum import SensorType


class SensorRepository(ABC):
    """Sensor CRUD with owner-scoped and spatial queries."""

    @abstractmethod
    def add(self, sensor: Sensor) -> None:
        """Store a new sensor. Raises DuplicateSensorIdError if the id is taken."""

    @abstractmethod
    def get(self, sensor_id: str) -> Sensor:
        """Return the sensor. Raises NotFoundError if unknown."""

    @abstractmethod
    def remove(self, sensor_id: str) -> None:
        """Delete the sensor and everything it owns. Raises NotFoundError if unknown."""

    @abstractmethod
    def exists(self, sensor_id: str) -> bool:
        ...

    @abstractmethod
    def find(self, owner_id: Optional[str] = None, sensor_type: Optional[SensorType] = None) -> List[Sensor]:
        """Sensors matching every given filter, newest registration first."""

    @abstractmethod
    def find_in_bounds(self, lat_min: float, lat_max: float, lon_min: float, lon_max: float) -> List[Sensor]:
        ...

    @abstractmethod
    def lock_for(self, sensor_id: str) -> threading.Lock:
        """Lock serializing writers (and snapshot readers) of one sensor."""


class InMemorySensorRepository(SensorRepository):

    def __init__(self):
        self._sensors: Dict[str, Sensor] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def add(self, sensor: Sensor) -> None:
        with self._guard:
            if sensor.sensor_id in self._sensors:
                raise DuplicateSensorIdError(f"Sensor with id '{sensor.sensor_id}' already exists")
            self._sensors[sensor.sensor_id] = sensor
            self._locks.setdefault(sensor.sensor_id, threading.Lock())

    def get(self, sensor_id: str) -> Sensor:
        with self._guard:
            sensor = self._sensors.get(sensor_id)
        if sensor is None:
            raise NotFoundError(f"Sensor '{sensor_id}' not found")
        return sensor

    def remove(self, sensor_id: str) -> None:
        with self._guard:
            if sensor_id not in self._sensors:
                raise NotFoundError(f"Sensor '{sensor_id}' not found")
            del self._sensors[sensor_id]
            self._locks.pop(sensor_id, None)

    def exists(self, sensor_id: str) -> bool:
        with self._guard:
            return sensor_id in self._sensors

    def find(self, owner_id: Optional[str] = None, sensor_type: Optional[SensorType] = None) -> List[Sensor]:
        with self._guard:
            sensors = list(self._sensors.values())
        if owner_id is not None:
            sensors = [s for s in sensors if s.owner_id == owner_id]
        if sensor_type is not None:
            sensors = [s for s in sensors if s.sensor_type == sensor_type]
        return sorted(sensors, key=lambda s: s.created_at, reverse=True)

    def find_in_bounds(self, lat_min: float, lat_max: float, lon_min: float, lon_max: float) -> List[Sensor]:
        with self._guard:
            sensors = list(self._sensors.values())
        return [
            s for s in sensors
            if lat_min <= s.location.latitude <= lat_max and lon_min <= s.location.longitude <= lon_max
        ]

    def lock_for(self, sensor_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(sensor_id)
        if lock is None:
            raise NotFoundError(f"Sensor '{sensor_id}' not found")
        return lock
