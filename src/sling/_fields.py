"""Dataclass field iteration shared by the codecs and the query encoder.

Field metadata drives naming per format: ``{"json": "name"}``,
``{"xml": "name"}`` or ``{"query": "name"}`` rename the field for that
format, a name of ``"-"`` skips it, and ``{"omitempty": True}`` drops
zero values.
"""

from __future__ import annotations

import dataclasses
import typing
from typing import Any, Iterator


def is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bool, int, float, str, bytes, list, tuple, dict)):
        return not value
    return False


def iter_fields(obj: Any, fmt: str) -> Iterator[tuple[str, Any]]:
    """Yield ``(wire_name, value)`` for each encodable field of ``obj``."""
    for field in dataclasses.fields(obj):
        name = field.metadata.get(fmt, field.name)
        if name == "-":
            continue
        value = getattr(obj, field.name)
        if field.metadata.get("omitempty") and is_empty(value):
            continue
        yield name, value


def wire_names(cls: type, fmt: str) -> dict[str, str]:
    """Map wire names to attribute names for dataclass ``cls``."""
    names: dict[str, str] = {}
    for field in dataclasses.fields(cls):
        name = field.metadata.get(fmt, field.name)
        if name != "-":
            names[name] = field.name
    return names


def field_types(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {field.name: field.type for field in dataclasses.fields(cls)}
