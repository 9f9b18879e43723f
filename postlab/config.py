from __future__ import annotations

import dataclasses
import enum
import json
from pathlib import Path
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T")


def _default_of(field: dataclasses.Field) -> Any:
    if field.default is not dataclasses.MISSING:
        return field.default
    if field.default_factory is not dataclasses.MISSING:  # type: ignore[misc]
        return field.default_factory()  # type: ignore[misc]
    return dataclasses.MISSING


def _coerce(default: Any, value: Any) -> Any:
    if dataclasses.is_dataclass(default) and isinstance(value, dict):
        return config_from_dict(type(default), value)
    if isinstance(default, enum.Enum) and not isinstance(value, enum.Enum):
        return type(default)(value)
    if isinstance(default, tuple) and isinstance(value, list):
        return tuple(value)
    return value


def config_from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    """Build a config dataclass from a (possibly partial) mapping.

    Unknown keys are ignored and missing keys keep their defaults. Nested
    config dataclasses and enum members are rebuilt from their JSON forms.
    """
    kwargs: Dict[str, Any] = {}
    for field in dataclasses.fields(cls):
        if not field.init or field.name not in data:
            continue
        kwargs[field.name] = _coerce(_default_of(field), data[field.name])
    return cls(**kwargs)


def load_config(cls: Type[T], path: str | Path | None) -> T:
    if not path:
        return cls()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must hold a JSON object")
    return config_from_dict(cls, data)


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, enum.Enum):
        return obj.value
    return str(obj)


def config_to_json(cfg: Any) -> str:
    return json.dumps(dataclasses.asdict(cfg), sort_keys=True, separators=(",", ":"), default=_jsonable)
