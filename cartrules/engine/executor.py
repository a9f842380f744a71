# cartrules/engine/executor.py
from dataclasses import dataclass, field
from typing import List

from ..utils.logging import logger
from .cart import CartAccessor
from .models import CartSnapshot, Decision, Rule
from .state import EngineState
from .telemetry import TelemetryReporter


@dataclass
class ActionOutcome:
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def modified(self) -> bool:
        return bool(self.added or self.removed)


class ActionExecutor:
    def __init__(self, cart: CartAccessor, state: EngineState, telemetry: TelemetryReporter):
        self.cart = cart
        self.state = state
        self.telemetry = telemetry

    async def apply(self, rule: Rule, decision: Decision, cart: CartSnapshot) -> ActionOutcome:
        if decision is Decision.FIRE:
            return await self.fire(rule, cart)
        if decision is Decision.REVERSE:
            return await self.reverse(rule, cart)
        return ActionOutcome()

    async def fire(self, rule: Rule, cart: CartSnapshot) -> ActionOutcome:
        """
        Add the rule's products that are neither tracked nor already in the cart.
        Only a pass that actually added something counts as a firing.
        """
        outcome = ActionOutcome()
        tracked = self.state.tracked_added_products
        for pid in rule.product_ids:
            if pid in tracked:
                continue
            if cart.contains(pid):
                tracked.add(pid)
                continue
            if await self.cart.add_item(pid):
                tracked.add(pid)
                outcome.added.append(pid)
                logger.info('Rule "%s": added product %s', rule.name or rule.id, pid)
            else:
                outcome.failed.append(pid)

        if outcome.added:
            self.state.mark_fired(rule.id)
            self.telemetry.report(rule.id, self.state.session_id, cart.token)
        return outcome

    async def reverse(self, rule: Rule, cart: CartSnapshot) -> ActionOutcome:
        """
        Remove what this engine added for the rule. Leaves fired_rule_keys
        alone: executeOncePerSession limits forward firing only.
        """
        outcome = ActionOutcome()
        tracked = self.state.tracked_added_products
        for pid in rule.product_ids:
            if pid not in tracked or not cart.contains(pid):
                continue
            if await self.cart.remove_item(pid):
                tracked.discard(pid)
                outcome.removed.append(pid)
                logger.info('Rule "%s": removed product %s (reverse)', rule.name or rule.id, pid)
            else:
                outcome.failed.append(pid)
        return outcome
