# cartrules/engine/rule_source.py
import asyncio
from typing import List, Optional

import httpx

from ..utils.logging import logger
from .models import Rule
from .state import EngineState

RULES_PATH = "/api/cart-rules"


def parse_rules(raw_rules) -> List[Rule]:
    """Keep the well-formed active rules; a bad record never takes the others down."""
    rules: List[Rule] = []
    for raw in raw_rules or []:
        try:
            rule = Rule.model_validate(raw)
        except ValueError as e:
            rid = raw.get("id") if isinstance(raw, dict) else None
            logger.warning("Skipping malformed rule %s: %s", rid, e)
            continue
        if rule.is_active:
            rules.append(rule)
    return rules


class RuleSource:
    """
    Fetch-once cache over the rule backend.
    Callers racing the first load share one request.
    """

    def __init__(self, client: httpx.AsyncClient, state: EngineState):
        self.client = client
        self.state = state
        self._inflight: Optional[asyncio.Future] = None

    async def load_rules(self, shop: str) -> List[Rule]:
        if self.state.rules_loaded:
            return self.state.rule_cache
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._fetch(shop))
        inflight = self._inflight
        try:
            return await asyncio.shield(inflight)
        finally:
            if self._inflight is inflight and inflight.done():
                self._inflight = None

    def invalidate(self) -> None:
        self.state.rules_loaded = False
        self.state.rule_cache = []

    async def _fetch(self, shop: str) -> List[Rule]:
        logger.info("Loading cart rules for %s", shop)
        try:
            r = await self.client.get(RULES_PATH, params={"shop": shop})
            r.raise_for_status()
            data = r.json()
            raw_rules = data.get("rules") if isinstance(data, dict) else None
            if not isinstance(raw_rules, list):
                raise ValueError("response has no 'rules' list")
        except httpx.HTTPError as e:
            logger.error("Failed to load cart rules: %s", e)
            return []
        except ValueError as e:
            logger.error("Failed to load cart rules: invalid response (%s)", e)
            return []

        rules = parse_rules(raw_rules)
        self.state.rule_cache = rules
        self.state.rules_loaded = True
        logger.info("Loaded %d cart rules", len(rules))
        return rules
