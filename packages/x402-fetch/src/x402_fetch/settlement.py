# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import SettlementFailed, SettlementMissingProof
from .models import PaymentRequirement, PaymentResult
from .otel import start_client_span

logger = logging.getLogger(__name__)


def _error_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class SettlementClient:
    """Exchanges a chosen requirement for a payment proof at the settlement service."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def settle(
        self,
        settlement_url: str,
        requirement: PaymentRequirement,
        *,
        x402_version: int = 1,
        request: Mapping[str, Any],
        auth_headers: Optional[Mapping[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PaymentResult:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        headers.update(auth_headers or {})
        body = {
            "requirement": requirement.as_payload(),
            "x402Version": x402_version,
            "metadata": metadata or {},
            "request": {
                "method": request.get("method") or "GET",
                "url": request.get("url"),
            },
        }

        with start_client_span("x402.settle") as span:
            span.set_attribute("x402.network", str(requirement.network or ""))
            span.set_attribute("x402.settlement_url", settlement_url)
            try:
                r = await self.http.post(settlement_url, json=body, headers=headers)
            except httpx.HTTPError as e:
                logger.warning("x402 settlement request to %s failed: %s", settlement_url, e)
                raise SettlementFailed(details=str(e), message=f"settlement request failed: {e}") from e
            span.set_attribute("http.status_code", r.status_code)

        if not r.is_success:
            logger.warning("x402 settlement rejected by %s: HTTP %s", settlement_url, r.status_code)
            raise SettlementFailed(details=_error_details(r), response=r)

        try:
            payload = r.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict) or not payload.get("paymentHeader"):
            raise SettlementMissingProof(payload=payload if payload is not None else r.text, response=r)
        return PaymentResult.from_response(payload, requirement)
