# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

import httpx

from .config import DEFAULT_SETTLEMENT_PATH
from .models import PaymentResult

PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_ATTEMPT_HEADER = "X-PAYMENT-ATTEMPT-ID"

# lower-case lookup name -> canonical wire name
FORWARDED_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("authorization", "Authorization"),
    ("x-authorization", "X-Authorization"),
    ("x-user-token", "X-User-Token"),
    ("mcp-session-id", "MCP-Session-Id"),
)

HeaderInput = Union[None, httpx.Headers, Mapping[str, Any], Iterable[Tuple[str, Any]]]


def create_headers(source: HeaderInput = None) -> httpx.Headers:
    """Build a fresh header container from a mapping, pair list or httpx.Headers.

    None values are skipped and list values contribute their first element.
    """
    if source is None:
        return httpx.Headers()
    if isinstance(source, httpx.Headers):
        return httpx.Headers(source.multi_items())
    if isinstance(source, Mapping):
        headers = httpx.Headers()
        for key, value in source.items():
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            if value is None:
                continue
            headers[str(key)] = str(value)
        return headers
    return httpx.Headers([(str(k), str(v)) for k, v in source if v is not None])


@dataclass(frozen=True)
class RequestSnapshot:
    """Immutable copy of the caller's request, captured once per send()."""

    method: str = "GET"
    headers: Tuple[Tuple[str, str], ...] = ()
    content: Optional[bytes] = None

    @classmethod
    def capture(
        cls,
        method: str = "GET",
        headers: HeaderInput = None,
        content: Union[None, str, bytes] = None,
        json_body: Any = None,
    ) -> "RequestSnapshot":
        h = create_headers(headers)
        if json_body is not None:
            if content is not None:
                raise ValueError("pass either content or json, not both")
            content = json.dumps(json_body, separators=(",", ":"), ensure_ascii=False)
            if "content-type" not in h:
                h["Content-Type"] = "application/json"
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(
            method=(method or "GET").upper(),
            headers=tuple(h.multi_items()),
            content=bytes(content) if content is not None else None,
        )

    def build_headers(self, payment: Optional[PaymentResult] = None) -> httpx.Headers:
        headers = httpx.Headers(list(self.headers))
        if payment is not None and payment.header:
            headers[PAYMENT_HEADER] = payment.header
        if payment is not None and payment.attempt_id:
            headers[PAYMENT_ATTEMPT_HEADER] = payment.attempt_id
        return headers


def join_base_path(base: str, path: str) -> str:
    """Join an API base and a path, collapsing a duplicated ``/api`` segment."""
    b = base.rstrip("/")
    p = path if path.startswith("/") else f"/{path}"
    if b.endswith("/api") and p.startswith("/api/"):
        return f"{b}{p[4:]}"
    if b.endswith("/api") and p == "/api":
        return b
    return f"{b}{p}"


def derive_settlement_url(target_url: str, settlement_path: str = DEFAULT_SETTLEMENT_PATH) -> str:
    path = settlement_path if settlement_path.startswith("/") else f"/{settlement_path}"
    try:
        parts = urlsplit(target_url)
    except ValueError:
        return path
    if not parts.scheme or not parts.netloc:
        return path
    return f"{parts.scheme}://{parts.netloc}{path}"


def extract_forward_headers(
    headers: HeaderInput = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Dict[str, str]:
    """Pick the identity/session headers allowed to reach the settlement call.

    Matching is case-insensitive; override values win over request headers and
    missing or empty values are left out.
    """
    lookup = {str(k).lower(): v for k, v in (overrides or {}).items()}
    source = create_headers(headers)
    out: Dict[str, str] = {}
    for name, canonical in FORWARDED_HEADERS:
        value = lookup.get(name)
        if value is None:
            value = source.get(name)
        if value:
            out[canonical] = str(value)
    return out
