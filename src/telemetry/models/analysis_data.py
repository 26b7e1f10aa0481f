"""Transient results produced by the analytics components. Callers own them once returned."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

from telemetry.models.sensor_enum import Severity


class AnomalyKind(Enum):
    SPIKE = "spike"
    DROP = "drop"
    TREND = "trend"


class OptimizationType(Enum):
    IRRIGATION = "irrigation"
    FERTILIZER = "fertilizer"
    HARVEST = "harvest"


@dataclass
class AnomalyFinding:
    sensor_id: str
    metric: str
    anomaly_type: AnomalyKind
    severity: Severity
    description: str
    timestamp: datetime
    expected_value: float
    actual_value: float
    confidence: int


@dataclass
class MaintenancePrediction:
    sensor_id: str
    issue: str
    probability: int
    estimated_time_to_failure: int  # days
    severity: Severity
    recommendations: List[str] = field(default_factory=list)
    confidence: int = 0


@dataclass
class OptimizationResult:
    type: OptimizationType
    current_efficiency: float
    optimized_efficiency: float
    improvement: float
    recommendations: List[str]
    estimated_savings: float
    implementation_cost: float
    roi: float
