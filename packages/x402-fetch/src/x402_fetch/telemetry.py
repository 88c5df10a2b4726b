# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

import httpx

from .config import X402Settings
from .headers import join_base_path

logger = logging.getLogger(__name__)


class ResourceReporter:
    """Best-effort registration of challenged resources with the x402 index.

    ``report`` schedules a detached task and returns immediately. The task's
    outcome is never surfaced: failures are logged at DEBUG and dropped, and
    nothing is retried. ``wait_idle`` lets shutdown code drain pending reports.
    """

    def __init__(self, settings: X402Settings, http: httpx.AsyncClient):
        self.settings = settings
        self.http = http
        self._pending: Set[asyncio.Task] = set()

    @property
    def target_url(self) -> str:
        return join_base_path(self.settings.api_base_url, self.settings.register_path)

    def build_request(
        self,
        resource_url: str,
        payload: Any,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        facilitator_url: Optional[str] = None,
        pay_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "resourceUrl": resource_url,
            "response": payload,
            "facilitatorUrl": facilitator_url or None,
            "payTo": pay_to or self.settings.pay_to or None,
            "metadata": metadata or {},
        }

    def report(
        self,
        resource_url: str,
        payload: Any,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        facilitator_url: Optional[str] = None,
        pay_to: Optional[str] = None,
    ) -> None:
        if not self.settings.register_enabled:
            return
        body = self.build_request(
            resource_url, payload, metadata=metadata, facilitator_url=facilitator_url, pay_to=pay_to
        )
        try:
            task = asyncio.get_running_loop().create_task(self._submit(body))
        except RuntimeError as e:
            logger.debug("x402 resource register skipped: %s", e)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _submit(self, body: Dict[str, Any]) -> None:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        try:
            r = await self.http.post(self.target_url, json=body, headers=headers)
            if not r.is_success:
                logger.debug("x402 resource register failed: HTTP %s", r.status_code)
        except Exception as e:
            logger.debug("x402 resource register failed: %s", e)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def wait_idle(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
