# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json
import logging
from typing import Any, Optional, Union

import httpx

from .config import X402Settings
from .errors import (
    InvalidChallengeBody,
    JsonBodyParseFailed,
    RetryLimitExceeded,
    UnexpectedTermination,
    X402Error,
)
from .headers import HeaderInput, RequestSnapshot, derive_settlement_url, extract_forward_headers
from .models import Challenge, FetchOptions, FetchResult, JsonFetchResult, PaymentResult
from .otel import start_client_span
from .selection import select_payment_requirement
from .settlement import SettlementClient
from .telemetry import ResourceReporter

logger = logging.getLogger(__name__)

PAYMENT_REQUIRED = 402


class X402Client:
    """HTTP client that pays its way through ``402 Payment Required``.

    Usage::

        async with X402Client(X402Settings()) as client:
            result = await client.send("https://api.example.com/data")
            result.response, result.payment_receipt
    """

    def __init__(self, settings: Optional[X402Settings] = None, *, http: Optional[httpx.AsyncClient] = None):
        self.settings = settings or X402Settings()
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=self.settings.timeout_s)
        self.settlement = SettlementClient(self.http)
        self.reporter = ResourceReporter(self.settings, self.http)

    async def __aenter__(self) -> "X402Client":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.reporter.wait_idle()
        if self._owns_http:
            await self.http.aclose()

    async def send(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: HeaderInput = None,
        content: Union[None, str, bytes] = None,
        json: Any = None,
        options: Optional[FetchOptions] = None,
    ) -> FetchResult:
        """Send a request, settling and retrying while the server answers 402.

        Returns the first non-402 response (or any response when the protocol is
        disabled) together with the last settlement made for it, if any.
        """
        options = options or FetchOptions()
        max_attempts = max(1, options.max_attempts or self.settings.max_attempts)
        settlement_path = options.settlement_path or self.settings.settlement_path
        enabled = self.settings.enabled if options.enabled is None else options.enabled
        snapshot = RequestSnapshot.capture(method, headers, content, json)

        attempt = 0
        payment: Optional[PaymentResult] = None
        with start_client_span("x402.send") as span:
            span.set_attribute("http.method", snapshot.method)
            span.set_attribute("http.url", url)
            while attempt < max_attempts:
                attempt_headers = snapshot.build_headers(payment)
                response = await self.http.request(
                    snapshot.method, url, headers=attempt_headers, content=snapshot.content
                )
                if response.status_code != PAYMENT_REQUIRED or not enabled:
                    span.set_attribute("x402.attempts", attempt + 1)
                    return FetchResult(response=response, payment_receipt=payment)

                if attempt + 1 >= max_attempts:
                    raise RetryLimitExceeded(response=response)

                try:
                    payment = await self._handle_payment_required(
                        url, response, snapshot, attempt_headers, options, settlement_path, attempt + 1
                    )
                except X402Error as e:
                    if e.response is None:
                        e.response = response
                    raise
                attempt += 1

        raise UnexpectedTermination()

    async def send_json(self, url: str, **kwargs: Any) -> JsonFetchResult:
        """Like :meth:`send` but also decodes the body.

        An empty or non-JSON body gives ``json=None`` unless the response claims
        ``application/json``, which raises :class:`JsonBodyParseFailed`.
        """
        result = await self.send(url, **kwargs)
        response = result.response
        text = response.text
        data = None
        if text:
            try:
                data = json.loads(text)
            except ValueError as e:
                ctype = (response.headers.get("content-type") or "").lower()
                if "application/json" in ctype:
                    raise JsonBodyParseFailed(body=text, response=response) from e
        return JsonFetchResult(response=response, json=data, text=text, payment_receipt=result.payment_receipt)

    async def _handle_payment_required(
        self,
        url: str,
        response: httpx.Response,
        snapshot: RequestSnapshot,
        attempt_headers: httpx.Headers,
        options: FetchOptions,
        settlement_path: str,
        attempt: int,
    ) -> PaymentResult:
        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidChallengeBody(response=response) from e

        challenge = Challenge.from_payload(payload)
        requirement = select_payment_requirement(
            challenge.accepts,
            options.preferred_networks or [self.settings.default_network],
        )
        settle_url = derive_settlement_url(url, settlement_path)
        auth_headers = extract_forward_headers(attempt_headers, options.auth_headers)
        metadata = {
            **(options.metadata or {}),
            "x402": {"attempt": attempt, "reason": challenge.reason},
        }

        self.reporter.report(
            url,
            payload,
            metadata=metadata,
            facilitator_url=options.facilitator_url,
            pay_to=options.pay_to,
        )

        settlement = await self.settlement.settle(
            settle_url,
            requirement,
            x402_version=challenge.x402Version,
            request={"method": snapshot.method, "url": url},
            auth_headers=auth_headers,
            metadata=metadata,
        )
        logger.info(
            "x402 settlement-ok url=%s network=%s amount=%s attempt=%d wallet=%s",
            url,
            requirement.network,
            requirement.maxAmountRequired,
            attempt,
            settlement.wallet_address,
        )
        return settlement
