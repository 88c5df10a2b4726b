# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
import os
import sys

import httpx
import pytest


def _add_package_src_to_syspath() -> None:
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    src = os.path.join(root, "packages", "x402-fetch", "src")
    if src not in sys.path:
        sys.path.insert(0, src)


_add_package_src_to_syspath()


# Import after adding to syspath
from fastapi import FastAPI
from mock_gateway import GATEWAY, build_gateway, make_http
from x402_fetch import X402Client, X402Settings


@pytest.fixture
def test_env(monkeypatch) -> None:
    """Set up test environment variables."""
    for name in (
        "X402_MAX_ATTEMPTS",
        "X402_SETTLEMENT_PATH",
        "X402_ENABLED",
        "X402_REGISTER_ENABLED",
        "X402_REGISTER_PATH",
        "X402_PAY_TO",
        "MCP_X402_PAY_TO",
        "X402_API_BASE_URL",
        "X402_API_TOKEN",
        "X402_DEFAULT_NETWORK",
        "X402_CATALOG_PATH",
        "X402_TIMEOUT_S",
        "X402_CATALOG_TTL_S",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("API_BASE_URL", GATEWAY)


@pytest.fixture
def settings(test_env) -> X402Settings:
    """Settings pointing at the mock gateway, registration off."""
    return X402Settings(register_enabled=False)


@pytest.fixture
def gateway() -> FastAPI:
    return build_gateway()


@pytest.fixture
def http(gateway: FastAPI) -> httpx.AsyncClient:
    return make_http(gateway)


@pytest.fixture
def client(settings: X402Settings, http: httpx.AsyncClient) -> X402Client:
    return X402Client(settings, http=http)


@pytest.fixture
def sample_accepts() -> list:
    return [
        {"scheme": "exact", "network": "solana", "maxAmountRequired": "1000", "payTo": "Sol111"},
        {"scheme": "exact", "network": "base", "maxAmountRequired": "1000", "payTo": "0x" + "c" * 40},
    ]
