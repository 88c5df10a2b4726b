# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from opentelemetry import trace


def start_client_span(name: str):
    tracer = trace.get_tracer("x402_fetch.client")
    return tracer.start_as_current_span(name)
