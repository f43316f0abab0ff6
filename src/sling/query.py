"""Conversion of query parameter sources into :class:`Values`."""

from __future__ import annotations

from typing import Any, Mapping

from ._fields import is_dataclass_instance, iter_fields
from .errors import UnsupportedQuerySourceError
from .values import Values


def format_value(value: Any) -> str:
    """Format a scalar the way query strings spell it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _add_field(values: Values, key: str, value: Any) -> None:
    if isinstance(value, (list, tuple)):
        for item in value:
            values.add(key, format_value(item))
    elif is_dataclass_instance(value):
        for name, nested in iter_fields(value, "query"):
            _add_field(values, f"{key}[{name}]", nested)
    else:
        values.add(key, format_value(value))


def encode_query(source: Any) -> Values:
    """Convert one query source into a fresh :class:`Values`.

    Supported sources are ``None``, a :class:`Values`, a mapping of keys to a
    string or a sequence of values, and a dataclass instance whose fields are
    encoded one key each.

    Raises:
        UnsupportedQuerySourceError: for any other shape.
    """
    if source is None:
        return Values()
    if isinstance(source, Values):
        return source.copy()
    if isinstance(source, Mapping):
        values = Values()
        for key, value in source.items():
            if not isinstance(key, str):
                raise UnsupportedQuerySourceError(
                    f"unsupported query source: key {key!r} is not a string"
                )
            if isinstance(value, (list, tuple)):
                for item in value:
                    values.add(key, format_value(item))
            else:
                values.add(key, format_value(value))
        return values
    if is_dataclass_instance(source):
        values = Values()
        for name, value in iter_fields(source, "query"):
            _add_field(values, name, value)
        return values
    raise UnsupportedQuerySourceError(
        f"unsupported query source: {type(source).__name__}"
    )
