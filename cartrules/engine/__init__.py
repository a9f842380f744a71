from .models import CartSnapshot, Decision, Rule
from .state import EngineState
from .evaluator import decide
from .runtime import CartRulesEngine

__all__ = ["CartRulesEngine", "CartSnapshot", "Decision", "EngineState", "Rule", "decide"]
