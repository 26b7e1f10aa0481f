import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from telemetry.config_loader import EngineConfig
from telemetry.errors import NotFoundError, ValidationError
from telemetry.event_hub import EventHub, TOPIC_ALERT_RAISED, TOPIC_READING_INGESTED
from telemetry.models.sensor_data import Alert, Reading, ReadingInput, Thresholds, as_utc, format_value, utc_now
from telemetry.models.sensor_enum import AlertType, ReadingQuality, Severity
from telemetry.storage.repository import SensorRepository
from telemetry.validation import parse_input


def threshold_alert(reading: Reading, thresholds: Thresholds) -> Optional[Alert]:
    """Alert for a reading outside [min, max], or None when it is in range."""
    if not thresholds.is_violated(reading.value):
        return None
    unit = reading.unit
    return Alert(
        type=AlertType.THRESHOLD,
        message=(f"Value {format_value(reading.value)} {unit} is outside normal range "
                 f"({format_value(thresholds.min)}-{format_value(thresholds.max)} {unit})"),
        severity=Severity.CRITICAL if thresholds.is_beyond_critical(reading.value) else Severity.HIGH,
        timestamp=reading.timestamp,
    )


class ReadingService:
    """Reading ingestion with synchronous threshold alerting, plus reading/alert queries."""

    def __init__(self, repository: SensorRepository, config: EngineConfig, event_hub: EventHub,
                 clock: Callable = utc_now, logger: Optional[logging.Logger] = None):
        self._repository = repository
        self._config = config
        self._event_hub = event_hub
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def ingest(self, sensor_id: str, value: float, unit: str, metric: str,
               quality: Optional[ReadingQuality] = None) -> Reading:
        """
        Append a reading and evaluate the sensor's thresholds.
        Input is validated before anything is touched.
        """
        data = parse_input(ReadingInput, {
            "value": value,
            "unit": unit,
            "metric": metric,
            "quality": quality if quality is not None else ReadingQuality.GOOD,
        })
        sensor = self._repository.get(sensor_id)

        with self._repository.lock_for(sensor_id):
            if not self._repository.exists(sensor_id):
                # Deleted while waiting for the lock
                raise NotFoundError(f"Sensor '{sensor_id}' not found")
            reading = Reading(
                timestamp=self._clock(),
                value=data.value,
                unit=data.unit,
                metric=data.metric,
                quality=data.quality,
            )
            sensor.readings.append(reading)
            sensor.last_reading = reading.timestamp
            alert = threshold_alert(reading, sensor.thresholds)
            if alert is not None:
                sensor.alerts.append(alert)

        self._logger.debug("Reading ingested: %s - %s %s", sensor_id, reading.value, reading.unit)
        self._event_hub.send_all_on_topic(TOPIC_READING_INGESTED, (sensor_id, reading))
        if alert is not None:
            self._logger.info("Alert raised for %s: [%s] %s", sensor_id, alert.severity.value, alert.message)
            self._event_hub.send_all_on_topic(TOPIC_ALERT_RAISED, (sensor_id, alert))
        return reading

    def list_readings(self, sensor_id: str, limit: Optional[int] = None,
                      start_time: Optional[datetime] = None, end_time: Optional[datetime] = None) -> List[Reading]:
        """Newest `limit` readings (capped at max_readings_limit) inside the inclusive time range."""
        if limit is None:
            limit = self._config.default_readings_limit
        if limit <= 0:
            raise ValidationError("Validation error", [{"field": "limit", "message": "Limit must be positive"}])
        if start_time is not None:
            start_time = as_utc(start_time)
        if end_time is not None:
            end_time = as_utc(end_time)
        if start_time is not None and end_time is not None and start_time > end_time:
            raise ValidationError("Validation error",
                                  [{"field": "start_time", "message": "start_time must not be after end_time"}])

        sensor = self._repository.get(sensor_id)
        with self._repository.lock_for(sensor_id):
            readings = sensor.readings.get_all()

        if start_time is not None:
            readings = [r for r in readings if r.timestamp >= start_time]
        if end_time is not None:
            readings = [r for r in readings if r.timestamp <= end_time]

        limit = min(limit, self._config.max_readings_limit)
        return readings[-limit:]

    def list_alerts(self, sensor_id: str, resolved: Optional[bool] = None) -> List[Alert]:
        sensor = self._repository.get(sensor_id)
        with self._repository.lock_for(sensor_id):
            alerts = [replace(alert) for alert in sensor.alerts]
        if resolved is not None:
            alerts = [a for a in alerts if a.resolved == resolved]
        return alerts

    def resolve_alert(self, sensor_id: str, alert_index: int) -> None:
        sensor = self._repository.get(sensor_id)
        with self._repository.lock_for(sensor_id):
            if not self._repository.exists(sensor_id):
                # Deleted while waiting for the lock
                raise NotFoundError(f"Sensor '{sensor_id}' not found")
            if alert_index < 0 or alert_index >= len(sensor.alerts):
                raise ValidationError("Invalid alert index",
                                      [{"field": "alert_index", "message": f"No alert at index {alert_index}"}])
            sensor.alerts[alert_index].resolved = True
        self._logger.info("Alert resolved for sensor: %s, alert index: %s", sensor_id, alert_index)
