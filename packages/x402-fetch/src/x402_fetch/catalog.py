# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field

from .config import X402Settings
from .errors import CatalogFetchFailed, CatalogInvalidResponse, X402Error
from .headers import join_base_path
from .normalize import ensure_list, normalize_x402_fields, trim_url

logger = logging.getLogger(__name__)

_CACHE_KEY = "resources"


class X402Resource(BaseModel):
    id: Any = None
    resource_url: str = ""
    facilitator_url: Optional[str] = None
    pay_to: Optional[str] = None
    x402_version: int = 1
    accepts: List[Dict[str, Any]] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    last_seen_at: Optional[str] = None


def transform_record(record: Any) -> Optional[X402Resource]:
    """Convert one catalog row into an :class:`X402Resource`; non-objects give None."""
    if not isinstance(record, dict):
        return None
    raw = normalize_x402_fields(record.get("raw_response") or {})
    if not isinstance(raw, dict):
        raw = {}
    accepts = []
    for entry in ensure_list(raw.get("accepts")):
        if not isinstance(entry, dict):
            continue
        accepts.append({**entry, "outputSchema": entry.get("outputSchema") or entry.get("output_schema")})
    version = raw.get("x402Version") or record.get("x402_version") or 1
    return X402Resource(
        id=record.get("id"),
        resource_url=trim_url(record.get("resource_url") or ""),
        facilitator_url=record.get("facilitator_url") or None,
        pay_to=record.get("pay_to") or None,
        x402_version=version if isinstance(version, int) else 1,
        accepts=accepts,
        raw=raw,
        metadata=record.get("metadata") or {},
        last_seen_at=record.get("last_seen_at") or record.get("updated_at") or None,
    )


class ResourceCatalog:
    """Read-through cache over the x402 resource index.

    The listing is cached for ``settings.catalog_ttl_s``. When a refresh fails
    the last good listing is served instead; with none the error propagates.
    """

    def __init__(self, settings: X402Settings, http: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=settings.timeout_s)
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=max(settings.catalog_ttl_s, 0.001))
        self._last_good: List[X402Resource] = []

    async def __aenter__(self) -> "ResourceCatalog":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    @property
    def url(self) -> str:
        return join_base_path(self.settings.api_base_url, self.settings.catalog_path)

    async def fetch(self) -> List[X402Resource]:
        headers = {"Accept": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        r = await self.http.get(self.url, headers=headers)
        if not r.is_success:
            raise CatalogFetchFailed(r.status_code, r.text or r.reason_phrase, response=r)
        try:
            body = r.json()
        except ValueError as e:
            raise CatalogInvalidResponse(response=r) from e
        if not isinstance(body, dict) or body.get("ok") is False:
            raise CatalogInvalidResponse(response=r)
        rows = body.get("resources")
        resources = [transform_record(row) for row in (rows if isinstance(rows, list) else [])]
        return [res for res in resources if res is not None]

    async def list_resources(self, force_refresh: bool = False) -> List[X402Resource]:
        if not force_refresh:
            cached = self._cache.get(_CACHE_KEY)
            if cached:
                return cached
        try:
            resources = await self.fetch()
        except (X402Error, httpx.HTTPError) as e:
            logger.warning("x402 catalog fetch failed: %s", e)
            if self._last_good:
                return self._last_good
            raise
        self._cache[_CACHE_KEY] = resources
        self._last_good = resources
        return resources

    def invalidate(self) -> None:
        self._cache.clear()
        self._last_good = []
