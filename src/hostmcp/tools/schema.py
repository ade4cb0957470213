"""Input schema derivation for tool argument types.

Argument types are pydantic models or dataclasses (plain annotated
classes work too).  Each field, in declaration order, becomes a JSON
Schema fragment::

    {"type": ..., "description"?: ..., "enum"?: [...],
     "properties"?: {...}, "items"?: {...}}

Structured field types get exactly one level of nested ``properties``;
nested fields are described by type only.  Deeper argument types get a
shallow schema.
"""

from __future__ import annotations

import dataclasses
import enum
import types
import typing
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel

_SEQUENCE_ORIGINS: tuple[type, ...] = (list, tuple, set, frozenset, Sequence)
_MAPPING_ORIGINS: tuple[type, ...] = (dict, Mapping)


@dataclass(frozen=True)
class FieldSpec:
    """One public field of an argument type."""

    name: str
    annotation: Any
    description: str | None = None
    enum: list[Any] | None = None
    required: bool = False


def generate_schema(args_type: type | None) -> dict[str, Any]:
    """Return the ``inputSchema`` object for *args_type*.

    ``None`` yields an empty object schema with no required fields.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    if args_type is not None:
        for spec in iter_fields(args_type):
            properties[spec.name] = field_schema(spec)
            if spec.required:
                required.append(spec.name)

    return {"type": "object", "properties": properties, "required": required}


def field_schema(spec: FieldSpec) -> dict[str, Any]:
    annotation = _unwrap(spec.annotation)
    fragment: dict[str, Any] = {"type": json_type(annotation)}

    if spec.description:
        fragment["description"] = spec.description

    values = spec.enum or _enum_values(annotation)
    if values:
        fragment["enum"] = list(values)

    if fragment["type"] == "object" and _is_structured(annotation):
        nested = {f.name: {"type": json_type(f.annotation)} for f in iter_fields(annotation)}
        if nested:
            fragment["properties"] = nested

    if fragment["type"] == "array":
        element = _element_type(annotation)
        if element is not None:
            fragment["items"] = {"type": json_type(element)}

    return fragment


def json_type(annotation: Any) -> str:
    """Map a Python annotation to a JSON Schema type name."""
    tp = _unwrap(annotation)
    origin = get_origin(tp)

    if origin is Literal:
        values = get_args(tp)
        return json_type(type(values[0])) if values else "string"
    if tp is bool:
        return "boolean"
    if tp is int:
        return "integer"
    if tp in (float, Decimal):
        return "number"
    if tp is str:
        return "string"
    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        members = [m.value for m in tp]
        return json_type(type(members[0])) if members else "string"
    if origin is not None and _is_subclass(origin, _SEQUENCE_ORIGINS):
        return "array"
    if isinstance(tp, type) and issubclass(tp, (list, tuple, set, frozenset)):
        return "array"
    if origin is not None and _is_subclass(origin, _MAPPING_ORIGINS):
        return "object"
    if isinstance(tp, type) and not issubclass(tp, (bytes, str)):
        return "object"
    return "string"


def iter_fields(args_type: Any) -> Iterator[FieldSpec]:
    """Yield the public fields of *args_type* in declaration order."""
    if not isinstance(args_type, type):
        return

    if issubclass(args_type, BaseModel):
        for name, info in args_type.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            enum_values = extra.get("enum")
            yield FieldSpec(
                name=info.alias or name,
                annotation=info.annotation,
                description=info.description,
                enum=list(enum_values) if isinstance(enum_values, (list, tuple)) else None,
                required=info.is_required(),
            )
        return

    hints = _type_hints(args_type)

    if dataclasses.is_dataclass(args_type):
        for f in dataclasses.fields(args_type):
            if f.name.startswith("_"):
                continue
            enum_values = f.metadata.get("enum")
            yield FieldSpec(
                name=f.name,
                annotation=hints.get(f.name, f.type),
                description=f.metadata.get("description"),
                enum=list(enum_values) if enum_values else None,
                required=(
                    f.default is dataclasses.MISSING
                    and f.default_factory is dataclasses.MISSING
                ),
            )
        return

    for name, annotation in hints.items():
        if name.startswith("_") or get_origin(annotation) is typing.ClassVar:
            continue
        yield FieldSpec(name=name, annotation=annotation, required=not hasattr(args_type, name))


def _type_hints(tp: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(tp)
    except Exception:
        return dict(getattr(tp, "__annotations__", {}))


def _unwrap(annotation: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers."""
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
            continue
        if origin in (Union, types.UnionType):
            members = [a for a in get_args(annotation) if a is not type(None)]
            if len(members) == 1:
                annotation = members[0]
                continue
        return annotation


def _enum_values(tp: Any) -> list[Any] | None:
    if get_origin(tp) is Literal:
        return list(get_args(tp))
    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return [m.value for m in tp]
    return None


def _element_type(tp: Any) -> Any | None:
    args = [a for a in get_args(tp) if a is not Ellipsis]
    return args[0] if args else None


def _is_structured(tp: Any) -> bool:
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    if issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp):
        return True
    return bool(getattr(tp, "__annotations__", None))


def _is_subclass(tp: Any, bases: tuple[type, ...]) -> bool:
    return isinstance(tp, type) and issubclass(tp, bases)
