"""Turn caller-supplied dicts (or already-built inputs) into validated engine inputs."""
from typing import Any, Type, TypeVar

import pydantic
from pydantic import TypeAdapter

from telemetry.errors import ValidationError

T = TypeVar("T")


def parse_input(model_cls: Type[T], data: Any, prefix: str = "") -> T:
    if isinstance(data, model_cls):
        return data
    try:
        return TypeAdapter(model_cls).validate_python(data)
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc, prefix) from exc
