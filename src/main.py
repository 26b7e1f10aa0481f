import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic_settings import BaseSettings, SettingsConfigDict

from routers.api import router as api_router
from schemas import AppHealthOK
from telemetry.config_loader import ConfigLoader
from telemetry.errors import DuplicateSensorIdError, NotFoundError, NotOwnerError, TelemetryError, ValidationError
from telemetry.service_manager import TelemetryEngine

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TELEMETRY_")

    app_name: str = "Sensor Telemetry Analytics API"
    debug: bool = False
    # Engine JSON config; defaults to config/engine_config.json at the project root
    config_path: Optional[str] = None


settings = Settings()


def create_engine(app_settings: Settings) -> TelemetryEngine:
    config_loader = ConfigLoader(app_settings.config_path)
    return TelemetryEngine(config=config_loader.config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine on startup and release event subscribers on shutdown."""
    engine = create_engine(settings)
    engine.event_hub.init(asyncio.get_running_loop())
    app.state.engine = engine
    logger.info("Telemetry engine started")
    try:
        yield
    finally:
        engine.event_hub.unsubscribe_all()
        engine.event_hub.init(None)
        logger.info("Telemetry engine stopped")


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)


def _error_response(status_code: int, exc: TelemetryError) -> JSONResponse:
    errors = exc.errors if isinstance(exc, ValidationError) else []
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "errors": errors})


@app.exception_handler(TelemetryError)
async def telemetry_error_handler(request: Request, exc: TelemetryError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _error_response(400, exc)
    if isinstance(exc, NotFoundError):
        return _error_response(404, exc)
    if isinstance(exc, DuplicateSensorIdError):
        return _error_response(409, exc)
    if isinstance(exc, NotOwnerError):
        return _error_response(403, exc)
    logger.error("Unhandled engine error on %s: %s", request.url.path, exc)
    return _error_response(500, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Validation error", "errors": errors})


@app.get("/", tags=["meta"])
async def read_root() -> dict[str, str]:
    return {"message": settings.app_name}


@app.get("/health", tags=["meta"], response_model=AppHealthOK)
async def healthcheck() -> AppHealthOK:
    return AppHealthOK(status="ok", app=settings.app_name)


# mount API router under /api
app.include_router(api_router, prefix="/api")
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
