"""Host page event bus.

Stands in for the storefront's DOM events. The theme publishes cart events
here, the scheduler subscribes to the ones that mean "the cart may have
changed", and the refresh coordinator publishes the fresh cart back.

Event names:
  cart:updated / cart:changed -> payload {"cart": CartSnapshot, ...} or theme-defined
  theme:cart:change, ajaxCart.afterCartLoad -> theme-specific cart changes
  cart:open / cart-drawer:open -> drawer opened
  cart:refresh -> ask the theme to re-render its cart
"""
from __future__ import annotations
from collections import defaultdict
from typing import Any, Callable, Dict, List

from ..utils.logging import logger

CART_UPDATED = "cart:updated"
CART_CHANGED = "cart:changed"
THEME_CART_CHANGE = "theme:cart:change"
AJAX_CART_LOADED = "ajaxCart.afterCartLoad"
CART_OPEN = "cart:open"
CART_DRAWER_OPEN = "cart-drawer:open"
CART_REFRESH = "cart:refresh"

CHANGE_SIGNAL_EVENTS = (
    CART_UPDATED,
    CART_CHANGED,
    THEME_CART_CHANGE,
    AJAX_CART_LOADED,
    CART_OPEN,
    CART_DRAWER_OPEN,
)

Subscriber = Callable[[str, Any], None]


class HostEventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, event_name: str, callback: Subscriber) -> None:
        if callback not in self._subscribers[event_name]:
            self._subscribers[event_name].append(callback)

    def unsubscribe(self, event_name: str, callback: Subscriber) -> None:
        try:
            self._subscribers[event_name].remove(callback)
        except ValueError:
            pass

    def publish(self, event_name: str, payload: Any = None) -> None:
        for callback in list(self._subscribers.get(event_name, [])):
            try:
                callback(event_name, payload)
            except Exception:
                # one broken theme handler must not stop the others
                logger.exception("Subscriber failed for %s", event_name)
