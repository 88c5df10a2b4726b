# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""Canonical field naming for x402 discovery documents.

Discovery documents in the wild mix ``snake_case`` and ``camelCase`` and a few
loose aliases (``body``, ``query``, ``headers``). Everything downstream reads
the camelCase spelling produced here.

Only the top level, each ``accepts`` entry and ``outputSchema.input`` are
rewritten. Values (including field names inside ``queryParams``) are kept as is.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

_SNAKE_SEGMENT = re.compile(r"_([a-z])")

INPUT_RENAMES = {
    "query_params": "queryParams",
    "body_fields": "bodyFields",
    "body_type": "bodyType",
    "header_fields": "headerFields",
}
INPUT_ALIASES = {
    "body": "bodyFields",
    "query": "queryParams",
    "headers": "headerFields",
}

# precedence of the spelling a value arrived under; lower wins
_CANONICAL, _RENAMED, _ALIASED = 0, 1, 2


def snake_to_camel(key: str) -> str:
    return _SNAKE_SEGMENT.sub(lambda m: m.group(1).upper(), key)


def _target(key: str, renames: Mapping[str, str], aliases: Mapping[str, str]) -> Tuple[str, int]:
    if key in renames:
        return renames[key], _RENAMED
    if key in aliases:
        return aliases[key], _ALIASED
    camel = snake_to_camel(key)
    return camel, _CANONICAL if camel == key else _RENAMED


def _rekey(
    obj: Mapping[str, Any],
    renames: Mapping[str, str],
    aliases: Mapping[str, str],
    special: Optional[Mapping[str, Tuple[str, Callable[[Any], Any]]]] = None,
) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    rank: Dict[str, int] = {}
    for key, value in obj.items():
        if special and key in special:
            target, convert = special[key]
            value = convert(value)
            level = _CANONICAL if key == target else _RENAMED
        else:
            target, level = _target(key, renames, aliases)
        if target in rank and rank[target] <= level:
            continue
        result[target] = value
        rank[target] = level
    return result


def normalize_input_schema(value: Any) -> Any:
    if not isinstance(value, Mapping):
        return value
    return _rekey(value, INPUT_RENAMES, INPUT_ALIASES)


def normalize_output_schema(value: Any) -> Any:
    if not isinstance(value, Mapping):
        return value
    return {k: normalize_input_schema(v) if k == "input" else v for k, v in value.items()}


def normalize_accept_entry(entry: Any) -> Any:
    if not isinstance(entry, Mapping):
        return entry
    special = {
        "outputSchema": ("outputSchema", normalize_output_schema),
        "output_schema": ("outputSchema", normalize_output_schema),
    }
    return _rekey(entry, {}, {}, special)


def _normalize_accepts(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return [normalize_accept_entry(entry) for entry in value]


def normalize_x402_fields(obj: Any) -> Any:
    """Return a copy of ``obj`` with x402 field names in canonical camelCase.

    A key already spelled canonically beats any alias of it; between aliases the
    first one seen wins and is never overwritten.
    """
    if not isinstance(obj, Mapping):
        return obj
    return _rekey(obj, {}, {}, {"accepts": ("accepts", _normalize_accepts)})


def ensure_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]


def trim_url(candidate: str) -> str:
    """Drop query string and fragment; anything unparsable comes back unchanged."""
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return candidate
    if not parts.scheme or not parts.netloc:
        return candidate
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", ""))
