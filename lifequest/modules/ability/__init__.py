"""Monster abilities, status effects and their per-round processing."""

from .engine import AbilityActivation, AbilityEngine, EffectReport, StatusTick
from .registry import AbilityRegistry, parse_effect, parse_effects
from .stacking import DEFAULT_STACK_RULES, StackRule, load_stack_rules, merge_status

__all__ = [
    "AbilityActivation",
    "AbilityEngine",
    "EffectReport",
    "StatusTick",
    "AbilityRegistry",
    "parse_effect",
    "parse_effects",
    "DEFAULT_STACK_RULES",
    "StackRule",
    "load_stack_rules",
    "merge_status",
]
