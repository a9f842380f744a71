# cartrules/engine/refresh.py
from typing import Callable, List, Optional

from ..utils.logging import logger
from .cart import CartAccessor
from .events import CART_REFRESH, CART_UPDATED, HostEventBus
from .models import CartSnapshot
from .state import EngineState

CountIndicator = Callable[[int], None]


class RefreshCoordinator:
    """
    After the engine changed the cart: tell the host page, update count
    badges, and open the self-trigger cooldown so the host's reaction to the
    refresh is not taken for a customer change.
    """

    def __init__(self, cart: CartAccessor, state: EngineState, bus: HostEventBus,
                 cooldown_seconds: float = 1.0):
        self.cart = cart
        self.state = state
        self.bus = bus
        self.cooldown_seconds = cooldown_seconds
        self.indicators: List[CountIndicator] = []

    def add_count_indicator(self, indicator: CountIndicator) -> None:
        self.indicators.append(indicator)

    def locked_product_ids(self) -> List[str]:
        locked: List[str] = []
        for rule in self.state.rule_cache:
            if not rule.prevent_quantity_changes:
                continue
            locked.extend(pid for pid in rule.product_ids
                          if pid in self.state.tracked_added_products and pid not in locked)
        return locked

    async def refresh(self, fallback: Optional[CartSnapshot] = None) -> Optional[CartSnapshot]:
        self.state.arm_suppression(self.cooldown_seconds)
        logger.info("Cart modified by rules, refreshing UI")

        cart = await self.cart.read_cart() or fallback
        self.bus.publish(CART_REFRESH)
        if cart is None:
            logger.warning("Cart UI refresh skipped: no cart state available")
            return None

        self.bus.publish(CART_UPDATED, {
            "cart": cart,
            "source": "cartrules",
            "locked_product_ids": self.locked_product_ids(),
        })
        for indicator in self.indicators:
            try:
                indicator(cart.item_count)
            except Exception:
                logger.exception("Cart count indicator update failed")
        return cart
