from typing import Annotated

from fastapi import Header, Request

from telemetry.service_manager import TelemetryEngine


def get_engine(request: Request) -> TelemetryEngine:
    """Engine created by the application lifespan."""
    return request.app.state.engine


def get_owner_id(x_owner_id: Annotated[str, Header(alias="X-Owner-Id", min_length=1)]) -> str:
    """Owning principal, supplied by the platform's auth layer in front of this service."""
    return x_owner_id
