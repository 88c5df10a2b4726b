# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""Error taxonomy for the x402 client.

Every failure the client surfaces derives from :class:`X402Error` and carries a
stable ``code`` plus, where one exists, the HTTP response that triggered it.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx


class X402Error(RuntimeError):
    code = "x402_error"

    def __init__(self, message: Optional[str] = None, *, response: Optional[httpx.Response] = None):
        super().__init__(message or self.code)
        self.response = response


class InvalidChallengeBody(X402Error):
    """402 body is not JSON or not a challenge object."""

    code = "x402_body_invalid"


class MissingRequirements(X402Error):
    code = "x402_accepts_missing"

    def __init__(self, payload: Any = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.payload = payload


class SettlementFailed(X402Error):
    """Settlement service answered with a non-2xx status."""

    code = "x402_settlement_failed"

    def __init__(self, details: Any = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.details = details

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class SettlementMissingProof(X402Error):
    code = "x402_settlement_missing_header"

    def __init__(self, payload: Any = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.payload = payload


class RetryLimitExceeded(X402Error):
    """Still challenged on the final permitted attempt."""

    code = "x402_retry_limit"


class UnexpectedTermination(X402Error):
    code = "x402_unexpected_termination"


class JsonBodyParseFailed(X402Error):
    """Response declared application/json but the body did not parse."""

    code = "json_parse_failed"

    def __init__(self, body: str = "", **kwargs: Any):
        super().__init__(**kwargs)
        self.body = body


class CatalogFetchFailed(X402Error):
    code = "x402_catalog_fetch_failed"

    def __init__(self, status_code: int, text: str = "", **kwargs: Any):
        super().__init__(f"{self.code}:{status_code}:{text}", **kwargs)
        self.status_code = status_code
        self.text = text


class CatalogInvalidResponse(X402Error):
    code = "x402_catalog_invalid_response"


class ResourceRequestFailed(X402Error):
    code = "x402_resource_request_failed"
