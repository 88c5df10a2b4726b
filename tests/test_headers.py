# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""
Test header utilities, request snapshots and settlement URL derivation.
"""
import httpx
import pytest

from x402_fetch.headers import (
    PAYMENT_ATTEMPT_HEADER,
    PAYMENT_HEADER,
    RequestSnapshot,
    create_headers,
    derive_settlement_url,
    extract_forward_headers,
    join_base_path,
)
from x402_fetch.models import PaymentRequirement, PaymentResult


def _payment(header="abc", attempt_id="42") -> PaymentResult:
    return PaymentResult(
        header=header,
        requirement=PaymentRequirement(network="solana", scheme="exact"),
        raw={"paymentHeader": header},
        attempt_id=attempt_id,
    )


class TestCreateHeaders:
    def test_from_mapping_skips_none_and_takes_first_list_value(self):
        headers = create_headers({"Accept": "application/json", "X-Skip": None, "X-Multi": ["a", "b"]})

        assert headers["accept"] == "application/json"
        assert "x-skip" not in headers
        assert headers["x-multi"] == "a"

    def test_from_pairs(self):
        headers = create_headers([("Authorization", "Bearer t"), ("X-Empty", None)])

        assert headers["authorization"] == "Bearer t"
        assert "x-empty" not in headers

    def test_copy_of_httpx_headers_is_independent(self):
        original = httpx.Headers({"A": "1"})
        copy = create_headers(original)
        copy["B"] = "2"

        assert "b" not in original

    def test_none_gives_empty_headers(self):
        assert len(create_headers(None)) == 0


class TestRequestSnapshot:
    def test_json_body_is_encoded_once_with_content_type(self):
        snap = RequestSnapshot.capture("post", {"Accept": "application/json"}, json_body={"a": 1})

        assert snap.method == "POST"
        assert snap.content == b'{"a":1}'
        assert snap.build_headers()["content-type"] == "application/json"

    def test_string_body_becomes_bytes(self):
        snap = RequestSnapshot.capture("PUT", None, "héllo")

        assert snap.content == "héllo".encode("utf-8")

    def test_payment_decoration(self):
        snap = RequestSnapshot.capture("GET", {"Accept": "application/json"})
        headers = snap.build_headers(_payment())

        assert headers[PAYMENT_HEADER] == "abc"
        assert headers[PAYMENT_ATTEMPT_HEADER] == "42"
        assert headers["accept"] == "application/json"

    def test_attempt_id_omitted_when_absent(self):
        headers = RequestSnapshot.capture().build_headers(_payment(attempt_id=None))

        assert headers[PAYMENT_HEADER] == "abc"
        assert PAYMENT_ATTEMPT_HEADER not in headers

    def test_decorating_does_not_touch_the_snapshot(self):
        snap = RequestSnapshot.capture("GET", {"Accept": "application/json"})
        snap.build_headers(_payment())

        assert PAYMENT_HEADER not in snap.build_headers()

    def test_content_and_json_are_exclusive(self):
        with pytest.raises(ValueError):
            RequestSnapshot.capture("POST", None, "x", json_body={"a": 1})


class TestUrls:
    def test_join_base_path_collapses_api_prefix(self):
        assert join_base_path("http://h/api", "/api/x402/resources") == "http://h/api/x402/resources"
        assert join_base_path("http://h/api/", "/api") == "http://h/api"
        assert join_base_path("http://h/", "register") == "http://h/register"

    def test_settlement_url_uses_target_origin(self):
        url = derive_settlement_url("https://api.example.com:8443/v1/data?q=1")

        assert url == "https://api.example.com:8443/api/payments/x402/settle"

    def test_settlement_path_gets_leading_slash(self):
        assert derive_settlement_url("http://h/x", "pay/settle") == "http://h/pay/settle"

    def test_unparsable_target_falls_back_to_path(self):
        assert derive_settlement_url("not a url", "/settle") == "/settle"


class TestForwardHeaders:
    def test_allow_list_is_case_insensitive_and_canonicalized(self):
        out = extract_forward_headers(
            {
                "authorization": "Bearer user",
                "X-USER-TOKEN": "tok",
                "Cookie": "session=1",
                "Accept": "application/json",
            }
        )

        assert out == {"Authorization": "Bearer user", "X-User-Token": "tok"}

    def test_overrides_win_over_request_headers(self):
        out = extract_forward_headers(
            {"Authorization": "Bearer request"},
            {"AUTHORIZATION": "Bearer override", "mcp-session-id": "sess-1"},
        )

        assert out == {"Authorization": "Bearer override", "MCP-Session-Id": "sess-1"}

    def test_missing_headers_are_simply_omitted(self):
        assert extract_forward_headers(None, None) == {}
        assert extract_forward_headers({"X-Authorization": ""}) == {}
