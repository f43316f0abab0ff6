"""Body marshalers and unmarshalers.

A marshaler turns a structured value into request body bytes plus the
content type describing them. An unmarshaler decodes response bytes into a
target, given the response's declared content type.

Decode targets are either a class, which is constructed from the decoded
payload, or an instance, which is populated in place:

* ``dict`` instances are updated with the payload's keys;
* ``list`` instances have their contents replaced;
* dataclass instances have matching attributes assigned.

The decoded value (the populated instance or the constructed object) is
returned either way.
"""

from __future__ import annotations

import dataclasses
import json
import types
import typing
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from ._fields import field_types, is_dataclass_instance, iter_fields, wire_names
from .errors import MarshalError, UnmarshalError, UnsupportedContentTypeError
from .query import encode_query

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_XML = "application/xml"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"


@runtime_checkable
class Marshaler(Protocol):
    def marshal(self, value: Any) -> tuple[bytes, str]: ...


@runtime_checkable
class Unmarshaler(Protocol):
    def unmarshal(self, data: bytes, content_type: str, target: Any) -> Any: ...


@dataclass(frozen=True)
class MarshalFunc:
    """Adapt a plain ``fn(value) -> (bytes, content_type)`` to a Marshaler."""

    fn: Callable[[Any], tuple[bytes, str]]

    def marshal(self, value: Any) -> tuple[bytes, str]:
        return self.fn(value)


@dataclass(frozen=True)
class UnmarshalFunc:
    """Adapt a plain ``fn(data, content_type, target)`` to an Unmarshaler."""

    fn: Callable[[bytes, str, Any], Any]

    def unmarshal(self, data: bytes, content_type: str, target: Any) -> Any:
        return self.fn(data, content_type, target)


def _is_optional(annotation: Any) -> bool:
    return typing.get_origin(annotation) in (typing.Union, types.UnionType) and (
        type(None) in typing.get_args(annotation)
    )


def _zero_value(annotation: Any, fmt: str) -> Any:
    """Return the value an absent field of ``annotation`` type decodes to."""
    if _is_optional(annotation):
        return None
    origin = typing.get_origin(annotation) or annotation
    if dataclasses.is_dataclass(origin):
        return _to_attributes(origin, {}, fmt)
    if origin in (str, bytes, int, float, bool, list, tuple, set, frozenset, dict):
        return origin()
    return None


def _rename_fields(cls: type, payload: Any, fmt: str) -> dict[str, Any]:
    """Re-key a decoded mapping from wire names to ``cls`` attribute names."""
    if fmt == "xml" and payload == "":
        payload = {}
    if not isinstance(payload, Mapping):
        raise UnmarshalError(
            f"cannot decode {type(payload).__name__} into {cls.__name__}"
        )
    names = wire_names(cls, fmt)
    hints = field_types(cls)
    renamed: dict[str, Any] = {}
    for wire_name, value in payload.items():
        attr = names.get(wire_name)
        if attr is not None:
            renamed[attr] = _to_attributes(hints.get(attr, Any), value, fmt)
    return renamed


def _to_attributes(annotation: Any, value: Any, fmt: str) -> Any:
    """Rewrite ``value`` so it validates against ``annotation``.

    Dataclass mappings are re-keyed by attribute name and absent fields
    without a default get their zero value. XML elements that occur once
    are wrapped when the field is a sequence.
    """
    if value is None:
        return None
    if _is_optional(annotation):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        return _to_attributes(args[0], value, fmt) if len(args) == 1 else value
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if dataclasses.is_dataclass(annotation) and isinstance(annotation, type):
        renamed = _rename_fields(annotation, value, fmt)
        hints = field_types(annotation)
        for field in dataclasses.fields(annotation):
            if (
                field.init
                and field.name not in renamed
                and field.default is dataclasses.MISSING
                and field.default_factory is dataclasses.MISSING
            ):
                renamed[field.name] = _zero_value(hints.get(field.name, Any), fmt)
        return renamed
    if origin in (list, set, frozenset, tuple):
        if fmt == "xml" and not isinstance(value, list):
            value = [value]
        if not isinstance(value, list) or not args:
            return value
        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            return [_to_attributes(a, v, fmt) for a, v in zip(args, value)]
        return [_to_attributes(args[0], item, fmt) for item in value]
    if origin is dict and len(args) == 2 and isinstance(value, Mapping):
        return {key: _to_attributes(args[1], item, fmt) for key, item in value.items()}
    return value


@lru_cache(maxsize=None)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _validate(target: Any, payload: Any) -> Any:
    try:
        return _adapter(target).validate_python(payload)
    except PydanticSchemaGenerationError as exc:
        raise UnmarshalError(f"unsupported decode target: {target!r}") from exc
    except ValidationError as exc:
        raise UnmarshalError(str(exc)) from exc


def decode_into(target: Any, payload: Any, fmt: str) -> Any:
    """Place a decoded ``payload`` into ``target`` and return the result.

    Class targets (including generic aliases such as ``list[Issue]``) are
    validated with pydantic, so nested dataclasses are constructed and
    scalars converted to the annotated types.
    """
    if isinstance(target, dict):
        if not isinstance(payload, Mapping):
            raise UnmarshalError(
                f"cannot decode {type(payload).__name__} into dict"
            )
        target.update(payload)
        return target
    if isinstance(target, list):
        if not isinstance(payload, list):
            raise UnmarshalError(
                f"cannot decode {type(payload).__name__} into list"
            )
        target[:] = payload
        return target
    if is_dataclass_instance(target):
        cls = type(target)
        current = {
            field.name: getattr(target, field.name)
            for field in dataclasses.fields(cls)
            if field.init
        }
        current.update(_rename_fields(cls, payload, fmt))
        decoded = _validate(cls, current)
        try:
            for name in current:
                setattr(target, name, getattr(decoded, name))
        except dataclasses.FrozenInstanceError as exc:
            raise UnmarshalError(f"cannot populate frozen {cls.__name__}") from exc
        return target
    if target is object:
        return payload
    if isinstance(target, type) or typing.get_origin(target) is not None:
        return _validate(target, _to_attributes(target, payload, fmt))
    raise UnmarshalError(f"unsupported decode target: {type(target).__name__}")


def _json_default(value: Any) -> Any:
    if is_dataclass_instance(value):
        return dict(iter_fields(value, "json"))
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


@dataclass(frozen=True)
class JSONMarshaler:
    """Encode bodies as JSON and decode JSON responses."""

    indent: bool = False

    def marshal(self, value: Any) -> tuple[bytes, str]:
        try:
            if self.indent:
                text = json.dumps(value, default=_json_default, indent=2)
            else:
                text = json.dumps(
                    value, default=_json_default, separators=(",", ":")
                )
        except (TypeError, ValueError) as exc:
            raise MarshalError(f"json: {exc}") from exc
        return text.encode("utf-8"), CONTENT_TYPE_JSON

    def unmarshal(self, data: bytes, content_type: str, target: Any) -> Any:
        try:
            payload = json.loads(data)
        except ValueError as exc:
            raise UnmarshalError(f"json: {exc}") from exc
        return decode_into(target, payload, "json")


def _xml_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _append_xml(parent: ET.Element, tag: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _append_xml(parent, tag, item)
        return
    child = ET.SubElement(parent, tag)
    if is_dataclass_instance(value):
        for name, nested in iter_fields(value, "xml"):
            _append_xml(child, name, nested)
    else:
        child.text = _xml_text(value)


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return element.text or ""
    result: dict[str, Any] = dict(element.attrib)
    for child in children:
        value = _element_to_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = existing = [existing]
            existing.append(value)
        else:
            result[child.tag] = value
    return result


@dataclass(frozen=True)
class XMLMarshaler:
    """Encode dataclass bodies as XML and decode XML responses.

    The root element is named after the dataclass; each field becomes a child
    element. Decoded documents become nested dicts of element text, with the
    root element unwrapped.
    """

    indent: bool = False

    def marshal(self, value: Any) -> tuple[bytes, str]:
        if not is_dataclass_instance(value):
            raise MarshalError(
                f"xml: unsupported type: {type(value).__name__}"
            )
        root = ET.Element(type(value).__name__)
        for name, nested in iter_fields(value, "xml"):
            _append_xml(root, name, nested)
        if self.indent:
            ET.indent(root, space="  ")
        return ET.tostring(root, encoding="unicode").encode("utf-8"), CONTENT_TYPE_XML

    def unmarshal(self, data: bytes, content_type: str, target: Any) -> Any:
        try:
            root = ET.fromstring(data)
        except ET.ParseError as exc:
            raise UnmarshalError(f"xml: {exc}") from exc
        return decode_into(target, _element_to_value(root), "xml")


@dataclass(frozen=True)
class FormMarshaler:
    """Encode bodies as ``application/x-www-form-urlencoded``.

    Accepts the same shapes as query parameter sources.
    """

    def marshal(self, value: Any) -> tuple[bytes, str]:
        try:
            encoded = encode_query(value).encode()
        except ValueError as exc:
            raise MarshalError(f"form: {exc}") from exc
        return encoded.encode("ascii"), CONTENT_TYPE_FORM


@dataclass(frozen=True)
class MultiUnmarshaler:
    """Pick the JSON or XML decoder from the response content type."""

    json_codec: JSONMarshaler = JSONMarshaler()
    xml_codec: XMLMarshaler = XMLMarshaler()

    def unmarshal(self, data: bytes, content_type: str, target: Any) -> Any:
        if CONTENT_TYPE_JSON in content_type:
            return self.json_codec.unmarshal(data, content_type, target)
        if CONTENT_TYPE_XML in content_type:
            return self.xml_codec.unmarshal(data, content_type, target)
        raise UnsupportedContentTypeError(content_type)


DEFAULT_MARSHALER: Marshaler = JSONMarshaler()
DEFAULT_UNMARSHALER: Unmarshaler = MultiUnmarshaler()
