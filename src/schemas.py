from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from telemetry.config_loader import EngineConfig
from telemetry.models.analysis_data import AnomalyKind, OptimizationType
from telemetry.models.sensor_data import Alert, DeviceMetadata, Location, Sensor, Thresholds
from telemetry.models.sensor_enum import AlertType, ReadingQuality, SensorStatus, SensorType, Severity
from telemetry.processing.health_scorer import health_score


class AppHealthOK(BaseModel):
    status: str
    app: str


class ErrorResponse(BaseModel):
    detail: str
    errors: List[Dict[str, str]] = []


class ReadingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime
    value: float
    unit: str
    metric: str
    quality: ReadingQuality


class ReadingsList(BaseModel):
    list: List[ReadingOut]


class AlertOut(BaseModel):
    index: int
    type: AlertType
    message: str
    severity: Severity
    timestamp: datetime
    resolved: bool

    @classmethod
    def from_alert(cls, index: int, alert: Alert) -> "AlertOut":
        return cls(index=index, type=alert.type, message=alert.message, severity=alert.severity,
                   timestamp=alert.timestamp, resolved=alert.resolved)


class AlertsList(BaseModel):
    list: List[AlertOut]


class SensorOut(BaseModel):
    sensor_id: str
    sensor_type: SensorType
    owner_id: str
    status: SensorStatus
    battery_level: float
    signal_strength: float
    location: Location
    thresholds: Thresholds
    metadata: DeviceMetadata
    created_at: datetime
    last_reading: Optional[datetime] = None
    current_reading: Optional[ReadingOut] = None
    reading_count: int
    unresolved_alerts: int
    health_score: int

    @classmethod
    def from_sensor(cls, sensor: Sensor, config: EngineConfig) -> "SensorOut":
        current = sensor.current_reading
        return cls(
            sensor_id=sensor.sensor_id,
            sensor_type=sensor.sensor_type,
            owner_id=sensor.owner_id,
            status=sensor.status,
            battery_level=sensor.battery_level,
            signal_strength=sensor.signal_strength,
            location=sensor.location,
            thresholds=sensor.thresholds,
            metadata=sensor.metadata,
            created_at=sensor.created_at,
            last_reading=sensor.last_reading,
            current_reading=ReadingOut.model_validate(current) if current is not None else None,
            reading_count=sensor.readings.size(),
            unresolved_alerts=len(sensor.unresolved_alerts()),
            health_score=health_score(sensor, low_battery=config.low_battery_level,
                                      poor_signal=config.poor_signal_strength),
        )


class SensorsList(BaseModel):
    list: List[SensorOut]


class HealthScoreResponse(BaseModel):
    sensor_id: str
    score: int


class AnomalyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sensor_id: str
    metric: str
    anomaly_type: AnomalyKind
    severity: Severity
    description: str
    timestamp: datetime
    expected_value: float
    actual_value: float
    confidence: int


class AnomaliesList(BaseModel):
    list: List[AnomalyOut]
    window_size: int


class MaintenanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sensor_id: str
    issue: str
    probability: int
    estimated_time_to_failure: int
    severity: Severity
    recommendations: List[str]
    confidence: int


class HealthSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    active: int
    maintenance_needed: int
    error: int
    low_battery: int
    poor_signal: int
    unresolved_alerts: int
    critical_alerts: int


class OptimizationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: OptimizationType
    current_efficiency: float
    optimized_efficiency: float
    improvement: float
    recommendations: List[str]
    estimated_savings: float
    implementation_cost: float
    roi: float
