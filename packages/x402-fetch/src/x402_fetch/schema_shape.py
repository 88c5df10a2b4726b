# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""Turn x402 ``outputSchema.input`` field descriptors into pydantic fields.

A descriptor is the loose JSON shape discovery documents use::

    {"type": "string", "enum": [...], "description": "...", "required": true,
     "properties": {...}, "items": {...}}

Fields are optional unless the descriptor says ``required: true`` or carries a
non-empty ``required`` list.

Descriptor keys are free-form, so each becomes a safe Python attribute name
with the original key kept as the field alias. Validate and dump by alias to
speak the wire names.
"""
from __future__ import annotations

import keyword
import re
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.fields import FieldInfo

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

FieldDefinition = Tuple[Any, FieldInfo]

_MODEL_CONFIG = ConfigDict(populate_by_name=True)
_NON_WORD = re.compile(r"\W")
_RESERVED = frozenset(dir(BaseModel))


def python_name(key: str, taken: Iterable[str] = ()) -> str:
    """A pydantic-safe attribute name for ``key``, unique among ``taken``."""
    name = _NON_WORD.sub("_", key).lstrip("_")
    if not name or name[0].isdigit() or keyword.iskeyword(name):
        name = f"field_{name}"
    if name in _RESERVED or name.startswith("model_"):
        name = f"field_{name}"
    taken = set(taken)
    candidate, n = name, 2
    while candidate in taken:
        candidate = f"{name}_{n}"
        n += 1
    return candidate


def _shape(properties: Mapping[Any, Any], hint: str) -> Dict[str, FieldDefinition]:
    shape: Dict[str, FieldDefinition] = {}
    for key, descriptor in properties.items():
        name = python_name(str(key), shape)
        shape[name] = field_from_descriptor(descriptor, f"{hint}_{name}" if hint else name, alias=str(key))
    return shape


def _enum_values(descriptor: Mapping[str, Any]) -> List[str]:
    raw = descriptor.get("enum")
    if not isinstance(raw, list):
        return []
    seen: List[str] = []
    for value in raw:
        s = str(value)
        if s and s not in seen:
            seen.append(s)
    return seen


def _model_name(hint: str) -> str:
    parts = [p for p in hint.replace("-", "_").split("_") if p]
    return "".join(p[:1].upper() + p[1:] for p in parts) or "Field"


def _annotation(descriptor: Mapping[str, Any], hint: str) -> Any:
    choices = _enum_values(descriptor)
    if choices:
        return Literal[tuple(choices)]

    kind = descriptor.get("type")
    if kind in ("number", "integer"):
        return Union[int, float]
    if kind == "boolean":
        return bool
    if kind == "object":
        props = descriptor.get("properties")
        if isinstance(props, Mapping):
            return create_model(f"{_model_name(hint)}Object", __config__=_MODEL_CONFIG, **_shape(props, hint))
        return Dict[str, Any]
    if kind == "array":
        items = descriptor.get("items")
        if isinstance(items, Mapping):
            return List[_annotation(items, f"{hint}_item")]
        return List[Any]
    if kind == "null":
        return None
    return str


def is_required(descriptor: Mapping[str, Any]) -> bool:
    required = descriptor.get("required")
    return required is True or (isinstance(required, list) and len(required) > 0)


def field_from_descriptor(descriptor: Any, hint: str = "field", alias: Optional[str] = None) -> FieldDefinition:
    base: Mapping[str, Any] = descriptor if isinstance(descriptor, Mapping) else {}
    annotation = _annotation(base, hint)
    description = base.get("description")
    description = str(description) if description else None
    if is_required(base):
        return annotation, Field(..., alias=alias, description=description)
    return Optional[annotation], Field(None, alias=alias, description=description)


def build_input_schema_shape(input_schema: Optional[Mapping[str, Any]] = None, method: str = "GET") -> Dict[str, FieldDefinition]:
    """Map each input field to a ``(annotation, FieldInfo)`` pair, keyed by its
    Python name and aliased to the original key.

    Safe methods read ``queryParams``; every other method reads ``bodyFields``.
    """
    schema = input_schema or {}
    if str(method or "GET").upper() in SAFE_METHODS:
        source = schema.get("queryParams") or schema.get("query_params")
    else:
        source = schema.get("bodyFields") or schema.get("body_fields") or schema.get("body")

    if not isinstance(source, Mapping):
        return {}
    return _shape(source, "")


def build_input_model(
    input_schema: Optional[Mapping[str, Any]] = None,
    method: str = "GET",
    model_name: str = "X402Input",
) -> Type[BaseModel]:
    return create_model(model_name, __config__=_MODEL_CONFIG, **build_input_schema_shape(input_schema, method))
