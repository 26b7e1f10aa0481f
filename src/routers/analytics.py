from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from routers.dependencies import get_engine, get_owner_id
from routers.sensor import INVALID, NOT_FOUND
from schemas import AnomaliesList, AnomalyOut, HealthSummaryOut, MaintenanceOut, OptimizationOut
from telemetry.service_manager import TelemetryEngine

router = APIRouter(prefix="/analytics", tags=["analytics"])

Engine = Annotated[TelemetryEngine, Depends(get_engine)]
Owner = Annotated[str, Depends(get_owner_id)]


@router.get("/sensors/{sensor_id}/anomalies", response_model=AnomaliesList, responses={**NOT_FOUND, **INVALID})
def detect_anomalies(
    sensor_id: str,
    engine: Engine,
    window_size: Annotated[Optional[int], Query(gt=0)] = None,
) -> AnomaliesList:
    """
    Scan the newest `window_size` readings (default 24) for spikes, drops and trends.

    Findings are returned spikes first, then drops, then at most one trend.
    Fewer than three readings return an empty list.
    """
    window = window_size or engine.config.default_window_size
    findings = engine.detect_anomalies(sensor_id, window)
    return AnomaliesList(list=[AnomalyOut.model_validate(f) for f in findings], window_size=window)


@router.get("/sensors/{sensor_id}/maintenance", response_model=MaintenanceOut, responses=NOT_FOUND)
def predict_maintenance(sensor_id: str, engine: Engine) -> MaintenanceOut:
    """Rule-based maintenance prediction from battery level and signal strength."""
    return MaintenanceOut.model_validate(engine.predict_maintenance(sensor_id))


@router.get("/summary", response_model=HealthSummaryOut)
def health_summary(engine: Engine, owner_id: Owner) -> HealthSummaryOut:
    """Health counters over all of the owner's sensors."""
    return HealthSummaryOut.model_validate(engine.health_summary(owner_id))


@router.get("/optimize/irrigation", response_model=Optional[OptimizationOut])
def optimize_irrigation(engine: Engine, owner_id: Owner) -> Optional[OptimizationOut]:
    """Irrigation efficiency estimate; `null` when the owner has no soil sensors."""
    result = engine.optimize_irrigation(owner_id)
    return OptimizationOut.model_validate(result) if result is not None else None


@router.get("/optimize/fertilizer", response_model=Optional[OptimizationOut])
def optimize_fertilizer(engine: Engine, owner_id: Owner) -> Optional[OptimizationOut]:
    """Fertilizer efficiency estimate; `null` without soil sensors and nutrient analyses."""
    result = engine.optimize_fertilizer(owner_id)
    return OptimizationOut.model_validate(result) if result is not None else None


@router.get("/optimize/harvest", response_model=Optional[OptimizationOut])
def optimize_harvest(engine: Engine, owner_id: Owner) -> Optional[OptimizationOut]:
    """Harvest-timing efficiency estimate; `null` without harvest history."""
    result = engine.optimize_harvest(owner_id)
    return OptimizationOut.model_validate(result) if result is not None else None
