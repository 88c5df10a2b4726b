# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import InvalidChallengeBody, MissingRequirements

EXACT_SCHEME = "exact"


def _protocol_version(value: Any) -> int:
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return 1


class PaymentRequirement(BaseModel):
    """One accepted way to pay, as offered in a challenge.

    Values are carried as received, whatever their JSON type. Fields the
    client does not interpret (``resource``, ``outputSchema``, ...)
    are kept as extras so the requirement can be sent back verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    scheme: Any = None
    network: Any = None
    maxAmountRequired: Any = None
    payTo: Any = None
    asset: Any = None
    extra: Any = None

    def as_payload(self) -> Dict[str, Any]:
        sent = set(self.model_fields_set) | set(self.model_extra or {})
        return {k: v for k, v in self.model_dump().items() if k in sent}


class Challenge(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    accepts: List[PaymentRequirement]
    x402Version: int = 1
    reason: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Challenge":
        accepts = payload.get("accepts") if isinstance(payload, dict) else None
        if not isinstance(accepts, list) or not accepts:
            raise MissingRequirements(payload=payload)
        version = _protocol_version(payload.get("x402Version"))
        reason = payload.get("reason")
        try:
            return cls(
                accepts=[PaymentRequirement.model_validate(entry) for entry in accepts],
                x402Version=version,
                reason=reason if isinstance(reason, str) else None,
            )
        except ValidationError as e:
            raise InvalidChallengeBody("x402 challenge accepts entries are malformed") from e


@dataclass(frozen=True)
class PaymentResult:
    header: str
    requirement: PaymentRequirement
    raw: Dict[str, Any]
    attempt_id: Optional[str] = None
    wallet_address: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Dict[str, Any], requirement: PaymentRequirement) -> "PaymentResult":
        attempt_id = payload.get("attemptId")
        wallet = payload.get("walletAddress")
        return cls(
            header=str(payload["paymentHeader"]),
            requirement=requirement,
            raw=payload,
            attempt_id=str(attempt_id) if attempt_id else None,
            wallet_address=str(wallet) if wallet else None,
        )


@dataclass
class FetchOptions:
    """Per-call overrides; anything left as None falls back to X402Settings."""

    max_attempts: Optional[int] = None
    settlement_path: Optional[str] = None
    enabled: Optional[bool] = None
    preferred_networks: Optional[Sequence[str]] = None
    auth_headers: Optional[Dict[str, str]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    pay_to: Optional[str] = None
    facilitator_url: Optional[str] = None


@dataclass(frozen=True)
class FetchResult:
    response: httpx.Response
    payment_receipt: Optional[PaymentResult] = None


@dataclass(frozen=True)
class JsonFetchResult:
    response: httpx.Response
    json: Any
    text: str
    payment_receipt: Optional[PaymentResult] = None
