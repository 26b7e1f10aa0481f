import logging
from dataclasses import dataclass
from typing import List, Optional

from telemetry.config_loader import EngineConfig
from telemetry.errors import NotFoundError, StorageError, ValidationError
from telemetry.models.analysis_data import AnomalyFinding, MaintenancePrediction, OptimizationResult
from telemetry.models.sensor_data import Sensor
from telemetry.models.sensor_enum import SensorStatus, SensorType, Severity
from telemetry.processing.anomaly_detector import detect_anomalies
from telemetry.processing.health_scorer import health_score, predict_maintenance
from telemetry.processing.optimizer import optimize_fertilizer, optimize_harvest, optimize_irrigation
from telemetry.storage.history import HistorySource
from telemetry.storage.repository import SensorRepository


@dataclass
class HealthSummary:
    total: int = 0
    active: int = 0
    maintenance_needed: int = 0
    error: int = 0
    low_battery: int = 0
    poor_signal: int = 0
    unresolved_alerts: int = 0
    critical_alerts: int = 0


class AnalyticsService:
    """
    On-demand analysis over snapshots of sensor state.
    Nothing here mutates a sensor; the pure computations live in telemetry.processing.
    """

    def __init__(self, repository: SensorRepository, history: HistorySource, config: EngineConfig,
                 logger: Optional[logging.Logger] = None):
        self._repository = repository
        self._history = history
        self._config = config
        self._logger = logger or logging.getLogger(__name__)

    def _snapshot(self, sensor_id: str) -> Sensor:
        sensor = self._repository.get(sensor_id)
        with self._repository.lock_for(sensor_id):
            return sensor.snapshot()

    def detect_anomalies(self, sensor_id: str, window_size: Optional[int] = None) -> List[AnomalyFinding]:
        """Findings over the newest `window_size` readings; fewer than three readings yield []."""
        if window_size is None:
            window_size = self._config.default_window_size
        if window_size <= 0:
            raise ValidationError("Validation error",
                                  [{"field": "window_size", "message": "Window size must be positive"}])

        sensor = self._repository.get(sensor_id)
        with self._repository.lock_for(sensor_id):
            window = sensor.readings.last(window_size)
            thresholds = sensor.thresholds
        findings = detect_anomalies(sensor_id, window, thresholds)
        if findings:
            self._logger.info("Detected %d anomalies for %s over %d readings",
                              len(findings), sensor_id, len(window))
        return findings

    def predict_maintenance(self, sensor_id: str) -> MaintenancePrediction:
        return predict_maintenance(self._snapshot(sensor_id), low_battery=self._config.low_battery_level,
                                   poor_signal=self._config.poor_signal_strength)

    def health_score(self, sensor_id: str) -> int:
        return health_score(self._snapshot(sensor_id), low_battery=self._config.low_battery_level,
                            poor_signal=self._config.poor_signal_strength)

    def health_summary(self, owner_id: str) -> HealthSummary:
        """
        Best-effort rollup over the owner's sensors: a sensor that cannot be
        read is left out and the rest are still counted.
        """
        summary = HealthSummary()
        for listed in self._repository.find(owner_id=owner_id):
            try:
                sensor = self._snapshot(listed.sensor_id)
            except (NotFoundError, StorageError) as e:
                self._logger.warning("Excluding sensor %s from health summary: %s", listed.sensor_id, e)
                continue

            summary.total += 1
            if sensor.status == SensorStatus.ACTIVE:
                summary.active += 1
            elif sensor.status == SensorStatus.MAINTENANCE:
                summary.maintenance_needed += 1
            elif sensor.status == SensorStatus.ERROR:
                summary.error += 1
            if sensor.battery_level < self._config.low_battery_level:
                summary.low_battery += 1
            if sensor.signal_strength < self._config.poor_signal_strength:
                summary.poor_signal += 1
            unresolved = sensor.unresolved_alerts()
            summary.unresolved_alerts += len(unresolved)
            summary.critical_alerts += sum(1 for a in unresolved if a.severity == Severity.CRITICAL)
        return summary

    def optimize_irrigation(self, owner_id: str) -> Optional[OptimizationResult]:
        soil_sensors = self._repository.find(owner_id=owner_id, sensor_type=SensorType.SOIL)
        return optimize_irrigation(soil_sensors)

    def optimize_fertilizer(self, owner_id: str) -> Optional[OptimizationResult]:
        soil_sensors = self._repository.find(owner_id=owner_id, sensor_type=SensorType.SOIL)
        analyses = self._history.nutrient_analyses(owner_id)
        return optimize_fertilizer(soil_sensors, analyses)

    def optimize_harvest(self, owner_id: str) -> Optional[OptimizationResult]:
        limit = self._config.history_limit
        harvests = self._history.harvests(owner_id, limit=limit)
        listings = self._history.listings(owner_id, limit=limit)
        return optimize_harvest(harvests, listings)
