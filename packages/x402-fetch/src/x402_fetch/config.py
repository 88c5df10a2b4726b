# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_SETTLEMENT_PATH = "/api/payments/x402/settle"
DEFAULT_REGISTER_PATH = "/api/x402/resources/register"
DEFAULT_CATALOG_PATH = "/api/x402/resources"
DEFAULT_API_BASE = "http://localhost:3030"
DEFAULT_NETWORK = "solana"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return default


def _env_bool(name: str, default: bool) -> bool:
    return parse_bool(os.getenv(name), default)


def _env_path(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def _env_first(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def _env_max_attempts() -> int:
    raw = os.getenv("X402_MAX_ATTEMPTS")
    try:
        return max(1, int(raw)) if raw else DEFAULT_MAX_ATTEMPTS
    except ValueError:
        return DEFAULT_MAX_ATTEMPTS


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


class X402Settings(BaseModel):
    """Process-wide x402 configuration.

    Every field defaults from the environment when the object is built; build it
    once at startup and hand it to the clients that need it.

    Env vars:
    - X402_MAX_ATTEMPTS (default 2)
    - X402_SETTLEMENT_PATH (default /api/payments/x402/settle)
    - X402_ENABLED, X402_REGISTER_ENABLED (default on)
    - X402_REGISTER_PATH (default /api/x402/resources/register)
    - X402_PAY_TO or MCP_X402_PAY_TO
    - API_BASE_URL or X402_API_BASE_URL (default http://localhost:3030)
    - X402_API_TOKEN (bearer for registration and catalog calls)
    - X402_DEFAULT_NETWORK (default solana)
    - X402_TIMEOUT_S (default 15), X402_CATALOG_TTL_S (default 60)
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default_factory=_env_max_attempts, ge=1)
    settlement_path: str = Field(
        default_factory=lambda: _env_path("X402_SETTLEMENT_PATH", DEFAULT_SETTLEMENT_PATH)
    )
    enabled: bool = Field(default_factory=lambda: _env_bool("X402_ENABLED", True))
    register_enabled: bool = Field(default_factory=lambda: _env_bool("X402_REGISTER_ENABLED", True))
    register_path: str = Field(
        default_factory=lambda: _env_path("X402_REGISTER_PATH", DEFAULT_REGISTER_PATH)
    )
    catalog_path: str = Field(
        default_factory=lambda: _env_path("X402_CATALOG_PATH", DEFAULT_CATALOG_PATH)
    )
    pay_to: Optional[str] = Field(default_factory=lambda: _env_first("X402_PAY_TO", "MCP_X402_PAY_TO"))
    api_base_url: str = Field(
        default_factory=lambda: (_env_first("API_BASE_URL", "X402_API_BASE_URL") or DEFAULT_API_BASE).rstrip("/")
    )
    api_token: Optional[str] = Field(default_factory=lambda: _env_first("X402_API_TOKEN"))
    default_network: str = Field(
        default_factory=lambda: _env_path("X402_DEFAULT_NETWORK", DEFAULT_NETWORK)
    )
    timeout_s: float = Field(default_factory=lambda: _env_float("X402_TIMEOUT_S", 15.0))
    catalog_ttl_s: float = Field(default_factory=lambda: _env_float("X402_CATALOG_TTL_S", 60.0))


def get_settings() -> X402Settings:
    return X402Settings()
