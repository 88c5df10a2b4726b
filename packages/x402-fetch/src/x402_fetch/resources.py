# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type
from urllib.parse import urlencode, urlsplit, urlunsplit

from pydantic import BaseModel

from .catalog import X402Resource
from .client import X402Client
from .errors import ResourceRequestFailed
from .models import FetchOptions
from .normalize import trim_url
from .schema_shape import SAFE_METHODS, build_input_model

logger = logging.getLogger(__name__)

_SLASHES = re.compile(r"/+")


def normalize_path(value: Optional[str]) -> str:
    if not value:
        return "/"
    parts = urlsplit(value)
    path = parts.path if parts.scheme and parts.netloc else value
    path = path.strip()
    if not path.startswith("/"):
        path = f"/{path}"
    path = _SLASHES.sub("/", path)
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path or "/"


def slug_from_path(path: str) -> str:
    segments = [s for s in normalize_path(path).split("/") if s]
    if not segments:
        return "resource"
    if segments[0] == "api" and len(segments) > 1:
        segments = segments[1:]
    return "_".join(segments)


def _host(url: str) -> Optional[str]:
    try:
        host = urlsplit(url).netloc
    except ValueError:
        return None
    return host.lower() or None


def _query_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def apply_query_params(url: str, params: Mapping[str, Any]) -> str:
    """Replace the query string of ``url`` with ``params``; lists repeat the key."""
    pairs = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, list):
            pairs.extend((key, _query_value(v)) for v in value)
        else:
            pairs.append((key, _query_value(value)))
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs), parts.fragment))


def build_json_body(args: Mapping[str, Any]) -> str:
    """Always a JSON object, even when there are no arguments."""
    return json.dumps(dict(args), separators=(",", ":"))


@dataclass
class PaidResource:
    """One callable x402 resource derived from a catalog entry."""

    name: str
    url: str
    method: str
    input_model: Type[BaseModel]
    description: str = ""
    network: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_accept(cls, resource: X402Resource, accept: Mapping[str, Any]) -> "PaidResource":
        url = accept.get("resource") or resource.resource_url
        path = normalize_path(resource.metadata.get("path") or url)
        output_schema = accept.get("outputSchema")
        input_schema = output_schema.get("input") if isinstance(output_schema, Mapping) else None
        if not isinstance(input_schema, Mapping):
            input_schema = {}
        method = str(input_schema.get("method") or "GET").upper()
        name = slug_from_path(path)
        tags = ["paid"]
        if accept.get("network"):
            tags.append(str(accept["network"]).lower())
        return cls(
            name=name,
            url=url,
            method=method,
            input_model=build_input_model(input_schema, method, model_name=f"{name}_input"),
            description=accept.get("description") or f"Invoke {trim_url(url)}",
            network=accept.get("network"),
            tags=tags,
        )

    async def invoke(
        self,
        client: X402Client,
        args: Optional[Mapping[str, Any]] = None,
        *,
        auth_token: Optional[str] = None,
        preferred_networks: Optional[List[str]] = None,
    ) -> Any:
        values = self.input_model.model_validate(dict(args or {})).model_dump(exclude_unset=True, by_alias=True)
        headers: Dict[str, str] = {"Accept": "application/json"}
        url = self.url
        body = None
        if self.method in SAFE_METHODS:
            url = apply_query_params(self.url, values)
        else:
            headers["Content-Type"] = "application/json"
            body = build_json_body(values)
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        logger.debug("x402 invoke %s %s %s", self.name, self.method, url)
        result = await client.send_json(
            url,
            method=self.method,
            headers=headers,
            content=body,
            options=FetchOptions(
                preferred_networks=preferred_networks,
                auth_headers=headers,
                metadata={
                    "tool": self.name,
                    "resourceUrl": self.url,
                    "acceptNetwork": self.network,
                    "acceptDescription": self.description,
                },
            ),
        )
        if not result.response.is_success:
            data = result.json if isinstance(result.json, dict) else {}
            message = data.get("error") or data.get("message") or result.text or f"request_failed:{result.response.status_code}"
            raise ResourceRequestFailed(str(message), response=result.response)
        if result.json is not None:
            return result.json
        return {"text": result.text or ""}


def discover_paid_resources(
    resources: Iterable[X402Resource],
    allowed_hosts: Optional[Iterable[str]] = None,
) -> List[PaidResource]:
    """Build invokers for every accept entry, skipping duplicate names and foreign hosts."""
    hosts = {h.lower() for h in allowed_hosts} if allowed_hosts is not None else None
    taken = set()
    out: List[PaidResource] = []
    for resource in resources:
        for accept in resource.accepts:
            url = accept.get("resource") or resource.resource_url
            host = _host(url)
            if not host or (hosts is not None and host not in hosts):
                continue
            paid = PaidResource.from_accept(resource, accept)
            if paid.name in taken:
                continue
            taken.add(paid.name)
            out.append(paid)
    return out
