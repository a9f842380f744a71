# cartrules/engine/state.py
from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set, Tuple

from .models import CartSnapshot, Rule


def new_session_id() -> str:
    """Per-instance id; 'once per session' therefore means once per engine lifetime."""
    return f"session_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


@dataclass
class EngineState:
    """
    Everything one engine instance remembers between passes.
    Owned by the runtime and handed to each component; never persisted.
    """
    session_id: str = field(default_factory=new_session_id)
    rule_cache: List[Rule] = field(default_factory=list)
    rules_loaded: bool = False
    fired_rule_keys: Set[Tuple[str, str]] = field(default_factory=set)
    tracked_added_products: Set[str] = field(default_factory=set)
    last_observed_cart: Optional[CartSnapshot] = None
    reconciling: bool = False
    suppress_until: float = 0.0
    clock: Callable[[], float] = time.monotonic

    def rule_key(self, rule_id: str) -> Tuple[str, str]:
        return (rule_id, self.session_id)

    def has_fired(self, rule_id: str) -> bool:
        return self.rule_key(rule_id) in self.fired_rule_keys

    def mark_fired(self, rule_id: str) -> None:
        self.fired_rule_keys.add(self.rule_key(rule_id))

    def is_suppressing(self) -> bool:
        return self.clock() < self.suppress_until

    def arm_suppression(self, seconds: float) -> bool:
        """Start the cooldown. An active window is left as is (not renewable)."""
        if self.is_suppressing():
            return False
        self.suppress_until = self.clock() + seconds
        return True

    def forget_absent(self, cart: CartSnapshot) -> Set[str]:
        gone = {pid for pid in self.tracked_added_products if not cart.contains(pid)}
        self.tracked_added_products -= gone
        return gone
