# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from .catalog import ResourceCatalog, X402Resource, transform_record
from .client import X402Client
from .config import X402Settings, get_settings
from .errors import (
    CatalogFetchFailed,
    CatalogInvalidResponse,
    InvalidChallengeBody,
    JsonBodyParseFailed,
    MissingRequirements,
    ResourceRequestFailed,
    RetryLimitExceeded,
    SettlementFailed,
    SettlementMissingProof,
    UnexpectedTermination,
    X402Error,
)
from .headers import (
    PAYMENT_ATTEMPT_HEADER,
    PAYMENT_HEADER,
    RequestSnapshot,
    create_headers,
    derive_settlement_url,
    extract_forward_headers,
    join_base_path,
)
from .models import Challenge, FetchOptions, FetchResult, JsonFetchResult, PaymentRequirement, PaymentResult
from .normalize import normalize_x402_fields
from .resources import PaidResource, discover_paid_resources
from .schema_shape import build_input_model, build_input_schema_shape
from .selection import select_payment_requirement
from .settlement import SettlementClient
from .telemetry import ResourceReporter

__all__ = [
    "X402Client",
    "X402Settings",
    "get_settings",
    "FetchOptions",
    "FetchResult",
    "JsonFetchResult",
    "Challenge",
    "PaymentRequirement",
    "PaymentResult",
    "RequestSnapshot",
    "PAYMENT_HEADER",
    "PAYMENT_ATTEMPT_HEADER",
    "create_headers",
    "derive_settlement_url",
    "extract_forward_headers",
    "join_base_path",
    "select_payment_requirement",
    "SettlementClient",
    "ResourceReporter",
    "normalize_x402_fields",
    "build_input_schema_shape",
    "build_input_model",
    "ResourceCatalog",
    "X402Resource",
    "transform_record",
    "PaidResource",
    "discover_paid_resources",
    "X402Error",
    "InvalidChallengeBody",
    "MissingRequirements",
    "SettlementFailed",
    "SettlementMissingProof",
    "RetryLimitExceeded",
    "UnexpectedTermination",
    "JsonBodyParseFailed",
    "CatalogFetchFailed",
    "CatalogInvalidResponse",
    "ResourceRequestFailed",
]
