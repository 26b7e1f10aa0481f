from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from routers.dependencies import get_engine, get_owner_id
from schemas import (
    AlertOut, AlertsList, ErrorResponse, HealthScoreResponse, ReadingOut, ReadingsList, SensorOut, SensorsList,
)
from telemetry.models.sensor_data import ReadingInput, SensorSpec, StatusPatch
from telemetry.models.sensor_enum import SensorType
from telemetry.service_manager import TelemetryEngine

router = APIRouter(prefix="/sensors", tags=["sensor"])

Engine = Annotated[TelemetryEngine, Depends(get_engine)]
Owner = Annotated[str, Depends(get_owner_id)]

NOT_FOUND = {
    404: {
        "model": ErrorResponse,
        "description": "Sensor not found.",
        "content": {"application/json": {"example": {"detail": "Sensor 'S1' not found", "errors": []}}},
    }
}
INVALID = {
    400: {
        "model": ErrorResponse,
        "description": "Invalid input.",
        "content": {"application/json": {"example": {
            "detail": "Validation error",
            "errors": [{"field": "thresholds", "message": "Value error, min (80.0) must be lower than max (20.0)"}],
        }}},
    }
}


@router.post("", status_code=201, response_model=SensorOut, responses={
    **INVALID,
    409: {
        "model": ErrorResponse,
        "description": "A sensor with this id already exists.",
        "content": {"application/json": {"example": {"detail": "Sensor with id 'S1' already exists", "errors": []}}},
    },
})
def register_sensor(spec: SensorSpec, engine: Engine, owner_id: Owner) -> SensorOut:
    """
    Register a new sensor for the calling owner.

    The sensor starts **active** with battery and signal at 100 and no readings or alerts.
    Thresholds must satisfy `min < max` with `critical` outside `[min, max]`.
    """
    sensor = engine.register_sensor(spec, owner_id)
    return SensorOut.from_sensor(sensor, engine.config)


@router.get("", response_model=SensorsList)
def list_sensors(engine: Engine, owner_id: Owner, sensor_type: Optional[SensorType] = None) -> SensorsList:
    """List the owner's sensors, newest registration first."""
    sensors = engine.registry.list_sensors(owner_id, sensor_type)
    return SensorsList(list=[SensorOut.from_sensor(s, engine.config) for s in sensors])


@router.get("/nearby", response_model=SensorsList, responses=INVALID)
def find_nearby_sensors(
    engine: Engine,
    latitude: Annotated[float, Query(ge=-90, le=90)],
    longitude: Annotated[float, Query(ge=-180, le=180)],
    radius_m: Annotated[float, Query(gt=0)] = 1000,
) -> SensorsList:
    """Sensors inside a square of roughly `radius_m` metres around the point."""
    sensors = engine.registry.find_nearby(latitude, longitude, radius_m)
    return SensorsList(list=[SensorOut.from_sensor(s, engine.config) for s in sensors])


@router.get("/maintenance", response_model=SensorsList)
def list_sensors_needing_maintenance(engine: Engine, owner_id: Owner) -> SensorsList:
    """
    Owner's sensors that need attention: in maintenance, due for calibration,
    low on battery or with poor signal.
    """
    sensors = engine.registry.find_needing_maintenance(owner_id)
    return SensorsList(list=[SensorOut.from_sensor(s, engine.config) for s in sensors])


@router.get("/{sensor_id}", response_model=SensorOut, responses=NOT_FOUND)
def get_sensor(sensor_id: str, engine: Engine, owner_id: Owner) -> SensorOut:
    sensor = engine.registry.get_sensor(sensor_id, owner_id)
    return SensorOut.from_sensor(sensor, engine.config)


@router.delete("/{sensor_id}", status_code=204, responses={
    **NOT_FOUND,
    403: {
        "model": ErrorResponse,
        "description": "The sensor belongs to another owner.",
        "content": {"application/json": {"example": {"detail": "Sensor 'S1' is not owned by 'farmer-2'", "errors": []}}},
    },
})
def delete_sensor(sensor_id: str, engine: Engine, owner_id: Owner) -> None:
    """Delete a sensor together with its readings and alerts."""
    engine.delete_sensor(sensor_id, owner_id)


@router.patch("/{sensor_id}/status", response_model=SensorOut, responses={**NOT_FOUND, **INVALID})
def update_sensor_status(sensor_id: str, patch: StatusPatch, engine: Engine) -> SensorOut:
    """
    Update status, battery level and/or signal strength.

    A battery alert (critical) is raised when the battery ends below 20%,
    a signal alert (high) when the signal ends below 30%.
    """
    sensor = engine.update_sensor_status(sensor_id, patch)
    return SensorOut.from_sensor(sensor, engine.config)


@router.post("/{sensor_id}/readings", status_code=201, response_model=ReadingOut,
             responses={**NOT_FOUND, **INVALID})
def ingest_reading(sensor_id: str, payload: ReadingInput, engine: Engine) -> ReadingOut:
    """
    Push a reading. Values outside the sensor's `[min, max]` raise a threshold alert,
    critical when the value is beyond the critical bound.
    """
    reading = engine.ingest_reading(sensor_id, payload.value, payload.unit, payload.metric, payload.quality)
    return ReadingOut.model_validate(reading)


@router.get("/{sensor_id}/readings", response_model=ReadingsList, responses={**NOT_FOUND, **INVALID})
def list_readings(
    sensor_id: str,
    engine: Engine,
    limit: Annotated[Optional[int], Query(gt=0)] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> ReadingsList:
    """Most recent readings, oldest first, optionally restricted to `[start_time, end_time]`."""
    readings = engine.list_readings(sensor_id, limit, start_time, end_time)
    return ReadingsList(list=[ReadingOut.model_validate(r) for r in readings])


@router.get("/{sensor_id}/alerts", response_model=AlertsList, responses=NOT_FOUND)
def list_alerts(sensor_id: str, engine: Engine, resolved: Optional[bool] = None) -> AlertsList:
    """All alerts of a sensor with their index; filter with `resolved=true|false`."""
    alerts = engine.list_alerts(sensor_id)
    items = [AlertOut.from_alert(i, a) for i, a in enumerate(alerts)]
    if resolved is not None:
        items = [item for item in items if item.resolved == resolved]
    return AlertsList(list=items)


@router.put("/{sensor_id}/alerts/{alert_index}/resolve", status_code=204, responses={**NOT_FOUND, **INVALID})
def resolve_alert(sensor_id: str, alert_index: int, engine: Engine) -> None:
    engine.resolve_alert(sensor_id, alert_index)


@router.get("/{sensor_id}/health", response_model=HealthScoreResponse, responses=NOT_FOUND)
def get_health_score(sensor_id: str, engine: Engine) -> HealthScoreResponse:
    """Composite 0-100 health score from battery, signal, status and unresolved alerts."""
    return HealthScoreResponse(sensor_id=sensor_id, score=engine.analytics.health_score(sensor_id))
