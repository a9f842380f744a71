# cartrules/engine/evaluator.py
from .models import CartSnapshot, Decision, Rule
from .state import EngineState


def qualifies(rule: Rule, cart: CartSnapshot) -> bool:
    """Inclusive at both ends: min <= total <= max (max only with an upper limit)."""
    total = cart.total_major
    meets_lower = total >= rule.min_cart_value
    meets_upper = not rule.has_upper_limit or total <= rule.max_cart_value
    return meets_lower and meets_upper


def decide(rule: Rule, cart: CartSnapshot, state: EngineState) -> Decision:
    if not rule.is_active:
        return Decision.SKIP

    if qualifies(rule, cart):
        if rule.execute_once_per_session and state.has_fired(rule.id):
            return Decision.SKIP
        return Decision.FIRE

    # executeOncePerSession never blocks reversal
    if rule.works_in_reverse:
        return Decision.REVERSE
    return Decision.SKIP
