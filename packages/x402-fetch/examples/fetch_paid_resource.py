# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""Fetch an x402-gated resource, settling through the configured gateway."""

import asyncio
import logging
import os

from dotenv import load_dotenv
from x402_fetch import FetchOptions, RetryLimitExceeded, SettlementFailed, X402Client, X402Settings

load_dotenv()


async def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    url = os.getenv("RESOURCE_URL", "http://localhost:3030/api/jupiter/quote?inputMint=SOL")
    token = os.getenv("USER_TOKEN")
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    async with X402Client(X402Settings()) as client:
        try:
            result = await client.send_json(
                url,
                headers=headers,
                options=FetchOptions(metadata={"origin": "cli"}),
            )
        except SettlementFailed as e:
            print(f"❌ Settlement failed (HTTP {e.status_code}): {e.details}")
            raise
        except RetryLimitExceeded:
            print("❌ Still payment-gated after the last permitted attempt")
            raise

        receipt = result.payment_receipt
        if receipt:
            print(f"✅ Paid on {receipt.requirement.network} (attempt {receipt.attempt_id})")
        print(result.json if result.json is not None else result.text)


if __name__ == "__main__":
    asyncio.run(main())
