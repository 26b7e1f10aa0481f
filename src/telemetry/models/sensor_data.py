"""
Sensor aggregate and the value types it owns.

Input shapes (registration spec, status patch, reading input) are pydantic
dataclasses so they validate on construction; the stored aggregate is a
plain dataclass.
"""
from dataclasses import dataclass as std_dataclass, field, replace
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic.dataclasses import dataclass

from telemetry.models.circular_buffer import CircularBuffer
from telemetry.models.sensor_enum import AlertType, ReadingQuality, SensorStatus, SensorType, Severity

DEFAULT_BUFFER_CAPACITY = 1000


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class Location:
    latitude: Annotated[float, Field(ge=-90, le=90)]
    longitude: Annotated[float, Field(ge=-180, le=180)]
    altitude: Optional[float] = None
    field_id: Optional[str] = None


@dataclass
class Thresholds:
    """
    Normal operating range of a sensor.
    `critical` sits outside [min, max] on the side where deviation is catastrophic.
    """
    min: Annotated[float, Field(allow_inf_nan=False)]
    max: Annotated[float, Field(allow_inf_nan=False)]
    critical: Annotated[float, Field(allow_inf_nan=False)]

    @model_validator(mode="after")
    def _check_bounds(self) -> "Thresholds":
        if not self.min < self.max:
            raise ValueError(f"min ({self.min}) must be lower than max ({self.max})")
        if self.min <= self.critical <= self.max:
            raise ValueError(f"critical ({self.critical}) must lie outside [{self.min}, {self.max}]")
        return self

    def is_violated(self, value: float) -> bool:
        return value < self.min or value > self.max

    def is_beyond_critical(self, value: float) -> bool:
        """True when value has crossed the critical bound on its side of the range."""
        if self.critical < self.min:
            return value < self.critical
        return value > self.critical


@dataclass
class DeviceMetadata:
    manufacturer: Annotated[str, Field(min_length=1)]
    model: Annotated[str, Field(min_length=1)]
    firmware: Annotated[str, Field(min_length=1)]
    installation_date: datetime
    last_calibration: datetime
    next_calibration: datetime

    @field_validator("installation_date", "last_calibration", "next_calibration")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return as_utc(value)


@dataclass
class SensorSpec:
    """Everything an owner supplies to register a sensor."""
    sensor_id: Annotated[str, Field(min_length=1)]
    sensor_type: SensorType
    location: Location
    thresholds: Thresholds
    metadata: DeviceMetadata


@dataclass
class StatusPatch:
    """Partial status update; only fields that are not None are applied."""
    status: Optional[SensorStatus] = None
    battery_level: Optional[Annotated[float, Field(ge=0, le=100)]] = None
    signal_strength: Optional[Annotated[float, Field(ge=0, le=100)]] = None


@dataclass
class ReadingInput:
    value: Annotated[float, Field(allow_inf_nan=False)]
    unit: Annotated[str, Field(min_length=1)]
    metric: Annotated[str, Field(min_length=1)]
    quality: ReadingQuality = ReadingQuality.GOOD


@std_dataclass(frozen=True)
class Reading:
    """A single telemetry sample."""
    timestamp: datetime
    value: float
    unit: str
    metric: str
    quality: ReadingQuality = ReadingQuality.GOOD


@std_dataclass
class Alert:
    type: AlertType
    message: str
    severity: Severity
    timestamp: datetime
    resolved: bool = False


@std_dataclass
class Sensor:
    """
    Aggregate root: identity, placement, health fields, and the readings and
    alerts the sensor exclusively owns.
    """
    sensor_id: str
    sensor_type: SensorType
    location: Location
    owner_id: str
    thresholds: Thresholds
    metadata: DeviceMetadata
    created_at: datetime
    status: SensorStatus = SensorStatus.ACTIVE
    battery_level: float = 100.0
    signal_strength: float = 100.0
    last_reading: Optional[datetime] = None
    readings: CircularBuffer[Reading] = field(
        default_factory=lambda: CircularBuffer(DEFAULT_BUFFER_CAPACITY))
    alerts: List[Alert] = field(default_factory=list)

    @property
    def current_reading(self) -> Optional[Reading]:
        if self.readings.size() == 0:
            return None
        return self.readings.get(-1)

    def unresolved_alerts(self) -> List[Alert]:
        return [alert for alert in self.alerts if not alert.resolved]

    def snapshot(self) -> "Sensor":
        """
        Copy safe to read without holding the sensor lock: own buffer and
        alert list, shared immutable readings.
        """
        readings: CircularBuffer[Reading] = CircularBuffer(self.readings.capacity)
        for reading in self.readings.get_all():
            readings.append(reading)
        return replace(self, readings=readings, alerts=[replace(alert) for alert in self.alerts])


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_value(value: float) -> str:
    """Render whole numbers without a trailing .0 in alert messages."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
