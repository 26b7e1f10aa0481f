import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from telemetry.config_loader import EngineConfig
from telemetry.event_hub import EventHub
from telemetry.models.analysis_data import AnomalyFinding, MaintenancePrediction, OptimizationResult
from telemetry.models.sensor_data import Alert, Reading, Sensor, utc_now
from telemetry.models.sensor_enum import ReadingQuality
from telemetry.services.analytics_service import AnalyticsService, HealthSummary
from telemetry.services.reading_service import ReadingService
from telemetry.services.sensor_registry import SensorRegistry
from telemetry.storage.history import HistorySource, InMemoryHistorySource
from telemetry.storage.repository import InMemorySensorRepository, SensorRepository


class TelemetryEngine:
    """
    Wires the registry, ingestion and analytics components around one
    repository, history source and event hub, and exposes the operations
    the rest of the platform calls.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 repository: Optional[SensorRepository] = None,
                 history: Optional[HistorySource] = None,
                 event_hub: Optional[EventHub] = None,
                 clock: Callable[[], datetime] = utc_now,
                 logger: Optional[logging.Logger] = None):
        self.config = config or EngineConfig()
        self.repository = repository or InMemorySensorRepository()
        self.history = history or InMemoryHistorySource()
        self.event_hub = event_hub or EventHub()
        self._logger = logger or logging.getLogger(__name__)

        self.registry = SensorRegistry(self.repository, self.config, self.event_hub, clock=clock)
        self.readings = ReadingService(self.repository, self.config, self.event_hub, clock=clock)
        self.analytics = AnalyticsService(self.repository, self.history, self.config)
        self._logger.info("Telemetry engine ready (buffer capacity %d)", self.config.buffer_capacity)

    def register_sensor(self, spec: Any, owner_id: str) -> Sensor:
        return self.registry.register(spec, owner_id)

    def update_sensor_status(self, sensor_id: str, patch: Any) -> Sensor:
        return self.registry.update_status(sensor_id, patch)

    def delete_sensor(self, sensor_id: str, owner_id: str) -> None:
        self.registry.delete(sensor_id, owner_id)

    def ingest_reading(self, sensor_id: str, value: float, unit: str, metric: str,
                       quality: Optional[ReadingQuality] = None) -> Reading:
        return self.readings.ingest(sensor_id, value, unit, metric, quality)

    def list_readings(self, sensor_id: str, limit: Optional[int] = None,
                      start_time: Optional[datetime] = None, end_time: Optional[datetime] = None) -> List[Reading]:
        return self.readings.list_readings(sensor_id, limit, start_time, end_time)

    def list_alerts(self, sensor_id: str, resolved: Optional[bool] = None) -> List[Alert]:
        return self.readings.list_alerts(sensor_id, resolved)

    def resolve_alert(self, sensor_id: str, alert_index: int) -> None:
        self.readings.resolve_alert(sensor_id, alert_index)

    def detect_anomalies(self, sensor_id: str, window_size: Optional[int] = None) -> List[AnomalyFinding]:
        return self.analytics.detect_anomalies(sensor_id, window_size)

    def predict_maintenance(self, sensor_id: str) -> MaintenancePrediction:
        return self.analytics.predict_maintenance(sensor_id)

    def health_summary(self, owner_id: str) -> HealthSummary:
        return self.analytics.health_summary(owner_id)

    def optimize_irrigation(self, owner_id: str) -> Optional[OptimizationResult]:
        return self.analytics.optimize_irrigation(owner_id)

    def optimize_fertilizer(self, owner_id: str) -> Optional[OptimizationResult]:
        return self.analytics.optimize_fertilizer(owner_id)

    def optimize_harvest(self, owner_id: str) -> Optional[OptimizationResult]:
        return self.analytics.optimize_harvest(owner_id)
