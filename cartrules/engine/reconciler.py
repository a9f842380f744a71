# cartrules/engine/reconciler.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..utils.logging import logger
from .cart import CartAccessor
from .evaluator import decide
from .executor import ActionExecutor
from .models import CartSnapshot, Decision
from .refresh import RefreshCoordinator
from .rule_source import RuleSource
from .state import EngineState


@dataclass
class PassResult:
    cart: Optional[CartSnapshot] = None
    decisions: Dict[str, Decision] = field(default_factory=dict)
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def cart_modified(self) -> bool:
        return bool(self.added or self.removed)


class Reconciler:
    """One reconciliation pass: read the cart, run every rule, refresh the host."""

    def __init__(self, shop: str, state: EngineState, rule_source: RuleSource,
                 cart: CartAccessor, executor: ActionExecutor, refresh: RefreshCoordinator):
        self.shop = shop
        self.state = state
        self.rule_source = rule_source
        self.cart = cart
        self.executor = executor
        self.refresh = refresh
        self.passes = 0

    async def run_pass(self, force: bool = False) -> Optional[PassResult]:
        state = self.state
        # flag is tested and set before the first await
        if state.reconciling:
            logger.debug("Already processing, skipping")
            return None
        if not force and state.is_suppressing():
            logger.debug("Cart update in progress, skipping rule check")
            return None

        state.reconciling = True
        try:
            self.passes += 1
            return await self._reconcile(force)
        except Exception:
            logger.exception("Error in reconciliation pass")
            return None
        finally:
            state.reconciling = False

    async def _reconcile(self, force: bool) -> PassResult:
        state = self.state
        rules = await self.rule_source.load_rules(self.shop)
        if not rules:
            return PassResult(skipped_reason="no_rules")

        cart = await self.cart.read_cart()
        if cart is None:
            return PassResult(skipped_reason="cart_unavailable")
        if not force and cart.same_state(state.last_observed_cart):
            return PassResult(cart=cart, skipped_reason="cart_unchanged")

        gone = state.forget_absent(cart)
        if gone:
            logger.info("No longer tracking products missing from cart: %s", sorted(gone))
        logger.info("Cart total: %s | items: %d", cart.total_major, cart.item_count)

        result = PassResult(cart=cart)
        for rule in rules:
            decision = decide(rule, cart, state)
            result.decisions[rule.id] = decision
            outcome = await self.executor.apply(rule, decision, cart)
            result.added.extend(outcome.added)
            result.removed.extend(outcome.removed)
            result.failed.extend(outcome.failed)

        if result.cart_modified:
            fresh = await self.refresh.refresh(fallback=cart)
            # compare the next pass against the cart after our own mutations
            if fresh is cart or result.failed:
                fresh = None
            state.last_observed_cart = fresh
        else:
            # a failed mutation leaves the snapshot unrecorded so the next signal retries
            state.last_observed_cart = None if result.failed else cart
        return result
