"""Exceptions raised by the telemetry engine."""
from typing import Dict, List, Optional

import pydantic


class TelemetryError(Exception):
    """Base class for all engine errors."""


class ValidationError(TelemetryError):
    """Malformed or missing input. `errors` lists the offending fields."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors: List[Dict[str, str]] = errors or []

    @classmethod
    def from_pydantic(cls, exc: pydantic.ValidationError, prefix: str = "") -> "ValidationError":
        errors = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err.get("loc", ()))
            if prefix:
                location = f"{prefix}.{location}" if location else prefix
            errors.append({"field": location, "message": err.get("msg", "invalid value")})
        return cls("Validation error", errors)


class NotFoundError(TelemetryError):
    """Unknown sensor id (or a sensor outside the caller's scope)."""


class ConflictError(TelemetryError):
    """The request conflicts with existing state or ownership."""


class DuplicateSensorIdError(ConflictError):
    pass


class NotOwnerError(ConflictError):
    pass


class StorageError(TelemetryError):
    """Raised by persistence collaborators when the backing store fails."""
