import logging
from typing import Any, Callable, List, Optional

from telemetry.config_loader import EngineConfig
from telemetry.errors import NotFoundError, NotOwnerError, ValidationError
from telemetry.event_hub import EventHub, TOPIC_ALERT_RAISED
from telemetry.models.circular_buffer import CircularBuffer
from telemetry.models.sensor_data import Alert, Sensor, SensorSpec, StatusPatch, format_value, utc_now
from telemetry.models.sensor_enum import AlertType, SensorStatus, SensorType, Severity
from telemetry.storage.repository import SensorRepository
from telemetry.validation import parse_input

METERS_PER_DEGREE = 111000


class SensorRegistry:
    """
    Owns sensor identity, placement, thresholds and health fields.
    Writers of one sensor are serialized through the repository's per-sensor lock.
    """

    def __init__(self, repository: SensorRepository, config: EngineConfig, event_hub: EventHub,
                 clock: Callable = utc_now, logger: Optional[logging.Logger] = None):
        self._repository = repository
        self._config = config
        self._event_hub = event_hub
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def register(self, spec: Any, owner_id: str) -> Sensor:
        """Create an active, fully charged sensor. Raises DuplicateSensorIdError on a taken id."""
        spec = parse_input(SensorSpec, spec)
        if not owner_id:
            raise ValidationError("Validation error", [{"field": "owner_id", "message": "Owner id is required"}])

        sensor = Sensor(
            sensor_id=spec.sensor_id,
            sensor_type=spec.sensor_type,
            location=spec.location,
            owner_id=owner_id,
            thresholds=spec.thresholds,
            metadata=spec.metadata,
            created_at=self._clock(),
            readings=CircularBuffer(self._config.buffer_capacity),
        )
        registered = sensor.snapshot()
        self._repository.add(sensor)
        self._logger.info("New sensor registered: %s (%s) for owner %s",
                          sensor.sensor_id, sensor.sensor_type.value, owner_id)
        return registered

    def get_sensor(self, sensor_id: str, owner_id: Optional[str] = None) -> Sensor:
        """Snapshot of the sensor; another owner's sensor is reported as not found."""
        sensor = self._repository.get(sensor_id)
        if owner_id is not None and sensor.owner_id != owner_id:
            raise NotFoundError(f"Sensor '{sensor_id}' not found")
        with self._repository.lock_for(sensor_id):
            return sensor.snapshot()

    def list_sensors(self, owner_id: str, sensor_type: Optional[SensorType] = None) -> List[Sensor]:
        return self._snapshots(self._repository.find(owner_id=owner_id, sensor_type=sensor_type))

    def find_nearby(self, latitude: float, longitude: float, radius_m: float = 1000) -> List[Sensor]:
        """Sensors inside the square of half-side radius_m / 111000 degrees around the point."""
        if radius_m <= 0:
            raise ValidationError("Validation error", [{"field": "radius_m", "message": "Radius must be positive"}])
        delta = radius_m / METERS_PER_DEGREE
        return self._snapshots(self._repository.find_in_bounds(latitude - delta, latitude + delta,
                                                               longitude - delta, longitude + delta))

    def find_needing_maintenance(self, owner_id: Optional[str] = None) -> List[Sensor]:
        now = self._clock()
        return [
            s for s in self._snapshots(self._repository.find(owner_id=owner_id))
            if s.status == SensorStatus.MAINTENANCE
            or s.metadata.next_calibration <= now
            or s.battery_level < self._config.low_battery_level
            or s.signal_strength < self._config.poor_signal_strength
        ]

    def update_status(self, sensor_id: str, patch: Any) -> Sensor:
        """
        Apply the provided fields, then raise a battery and/or signal alert
        for every low level the sensor is left with.
        """
        patch = parse_input(StatusPatch, patch)
        sensor = self._repository.get(sensor_id)
        raised: List[Alert] = []

        with self._repository.lock_for(sensor_id):
            if not self._repository.exists(sensor_id):
                # Deleted while waiting for the lock
                raise NotFoundError(f"Sensor '{sensor_id}' not found")
            if patch.status is not None:
                sensor.status = patch.status
            if patch.battery_level is not None:
                sensor.battery_level = patch.battery_level
            if patch.signal_strength is not None:
                sensor.signal_strength = patch.signal_strength

            now = self._clock()
            if sensor.battery_level < self._config.low_battery_level:
                raised.append(Alert(
                    type=AlertType.BATTERY,
                    message=f"Low battery level: {format_value(sensor.battery_level)}%",
                    severity=Severity.CRITICAL,
                    timestamp=now,
                ))
            if sensor.signal_strength < self._config.poor_signal_strength:
                raised.append(Alert(
                    type=AlertType.SIGNAL,
                    message=f"Poor signal strength: {format_value(sensor.signal_strength)}%",
                    severity=Severity.HIGH,
                    timestamp=now,
                ))
            sensor.alerts.extend(raised)
            snapshot = sensor.snapshot()

        self._logger.info("Sensor status updated: %s", sensor_id)
        self._publish_alerts(sensor_id, raised)
        return snapshot

    def delete(self, sensor_id: str, owner_id: str) -> None:
        """Remove the sensor with all its readings and alerts."""
        sensor = self._repository.get(sensor_id)
        if sensor.owner_id != owner_id:
            raise NotOwnerError(f"Sensor '{sensor_id}' is not owned by '{owner_id}'")
        with self._repository.lock_for(sensor_id):
            unresolved = len(sensor.unresolved_alerts())
            self._repository.remove(sensor_id)
        if unresolved:
            self._logger.warning("Sensor %s deleted with %d unresolved alerts", sensor_id, unresolved)
        self._logger.info("Sensor deleted: %s", sensor_id)

    def _snapshots(self, sensors: List[Sensor]) -> List[Sensor]:
        result = []
        for sensor in sensors:
            try:
                lock = self._repository.lock_for(sensor.sensor_id)
            except NotFoundError:
                # Deleted after the query ran
                continue
            with lock:
                result.append(sensor.snapshot())
        return result

    def _publish_alerts(self, sensor_id: str, alerts: List[Alert]) -> None:
        for alert in alerts:
            self._logger.info("Alert raised for %s: [%s] %s", sensor_id, alert.severity.value, alert.message)
            self._event_hub.send_all_on_topic(TOPIC_ALERT_RAISED, (sensor_id, alert))
