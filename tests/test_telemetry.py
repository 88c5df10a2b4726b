# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""
Test best-effort resource registration.
"""
import logging

import httpx
import pytest

from mock_gateway import GATEWAY, build_gateway, make_http
from x402_fetch.config import X402Settings
from x402_fetch.telemetry import ResourceReporter


def _settings(**overrides) -> X402Settings:
    values = {
        "api_base_url": GATEWAY,
        "register_enabled": True,
        "register_path": "/api/x402/resources/register",
        "api_token": None,
        "pay_to": None,
    }
    values.update(overrides)
    return X402Settings(**values)


@pytest.mark.asyncio
class TestResourceReporter:
    async def test_report_posts_registration(self, test_env):
        app = build_gateway()
        reporter = ResourceReporter(_settings(api_token="svc-token", pay_to="PayDefault"), make_http(app))

        assert reporter.report(f"{GATEWAY}/api/data", {"accepts": []}, metadata={"x402": {"attempt": 1}}) is None
        await reporter.wait_idle()

        call = app.state.register_calls[0]
        assert call["body"] == {
            "resourceUrl": f"{GATEWAY}/api/data",
            "response": {"accepts": []},
            "facilitatorUrl": None,
            "payTo": "PayDefault",
            "metadata": {"x402": {"attempt": 1}},
        }
        assert call["headers"]["authorization"] == "Bearer svc-token"
        assert reporter.pending == 0

    async def test_explicit_context_wins(self, test_env):
        app = build_gateway()
        reporter = ResourceReporter(_settings(pay_to="PayDefault"), make_http(app))

        reporter.report("u", {}, facilitator_url="https://f.example.com", pay_to="PayCaller")
        await reporter.wait_idle()

        body = app.state.register_calls[0]["body"]
        assert body["facilitatorUrl"] == "https://f.example.com"
        assert body["payTo"] == "PayCaller"
        assert "authorization" not in app.state.register_calls[0]["headers"]

    async def test_disabled(self, test_env):
        app = build_gateway()
        reporter = ResourceReporter(_settings(register_enabled=False), make_http(app))

        reporter.report("u", {})
        await reporter.wait_idle()

        assert app.state.register_calls == []

    async def test_transport_failure_is_swallowed(self, test_env, caplog):
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        reporter = ResourceReporter(_settings(), httpx.AsyncClient(transport=httpx.MockTransport(boom)))

        with caplog.at_level(logging.DEBUG, logger="x402_fetch.telemetry"):
            reporter.report("u", {})
            await reporter.wait_idle()

        assert "resource register failed" in caplog.text

    async def test_http_error_status_is_swallowed(self, test_env, caplog):
        app = build_gateway(register_status=500)
        reporter = ResourceReporter(_settings(), make_http(app))

        with caplog.at_level(logging.DEBUG, logger="x402_fetch.telemetry"):
            reporter.report("u", {})
            await reporter.wait_idle()

        assert len(app.state.register_calls) == 1
        assert "HTTP 500" in caplog.text


class TestReporterWithoutLoop:
    def test_report_outside_event_loop_does_not_raise(self, test_env):
        reporter = ResourceReporter(_settings(), httpx.AsyncClient())

        assert reporter.report("u", {}) is None
        assert reporter.pending == 0

    def test_target_url(self, test_env):
        reporter = ResourceReporter(_settings(api_base_url="http://h/api"), httpx.AsyncClient())

        assert reporter.target_url == "http://h/api/x402/resources/register"
