"""Enumerations for type-safe sensor, reading and alert references."""
from enum import Enum


class SensorType(Enum):
    """Kind of field sensor."""
    SOIL = "soil"
    WEATHER = "weather"
    CROP = "crop"
    EQUIPMENT = "equipment"
    WATER = "water"
    AIR = "air"


class SensorStatus(Enum):
    """Operational status of a sensor."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    ERROR = "error"


class ReadingQuality(Enum):
    """Quality tag attached to a reading by the device."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class AlertType(Enum):
    THRESHOLD = "threshold"
    BATTERY = "battery"
    SIGNAL = "signal"
    MAINTENANCE = "maintenance"
    ANOMALY = "anomaly"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
