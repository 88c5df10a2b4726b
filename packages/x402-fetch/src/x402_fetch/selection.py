# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Optional, Sequence

from .config import DEFAULT_NETWORK
from .models import EXACT_SCHEME, PaymentRequirement


def select_payment_requirement(
    accepts: Sequence[PaymentRequirement],
    preferred_networks: Optional[Sequence[str]] = None,
    scheme: str = EXACT_SCHEME,
) -> PaymentRequirement:
    """Pick the requirement to settle.

    Walks the preferred networks in order and returns the first offer on that
    network with the given scheme; falls back to the first offer.
    """
    if not accepts:
        raise ValueError("accepts must not be empty")
    networks = list(preferred_networks or []) or [DEFAULT_NETWORK]
    for network in networks:
        for requirement in accepts:
            if requirement.network == network and requirement.scheme == scheme:
                return requirement
    return accepts[0]
