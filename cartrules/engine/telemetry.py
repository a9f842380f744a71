# cartrules/engine/telemetry.py
import asyncio
from typing import Optional, Set

import httpx

from ..utils.logging import logger
from .rule_source import RULES_PATH


class TelemetryReporter:
    """
    Fire-and-forget execution tracking. Reports run as background tasks;
    losing one only costs analytics, never cart correctness.
    """

    def __init__(self, client: httpx.AsyncClient, shop: str):
        self.client = client
        self.shop = shop
        self._pending: Set[asyncio.Task] = set()
        self.sent = 0
        self.failed = 0

    def report(self, rule_id: str, session_id: str, cart_token: Optional[str]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._send(rule_id, session_id, cart_token)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, rule_id: str, session_id: str, cart_token: Optional[str]) -> None:
        payload = {
            "ruleId": rule_id,
            "sessionId": session_id,
            "cartId": cart_token,
            "shop": self.shop,
        }
        try:
            r = await self.client.post(RULES_PATH, json=payload)
            r.raise_for_status()
            self.sent += 1
        except Exception as e:
            self.failed += 1
            logger.warning("Tracking failed for rule %s: %s", rule_id, e)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
