"""
Same-type status stacking rules.

Each status type carries its own rule, read from `battle.status_stacking`:

- stack:   the new instance is appended next to the existing ones
- refresh: merged into the existing instance (stronger value, longer duration)
- ignore:  the existing instance wins and the new one is dropped

Buffs and debuffs only collide when they touch the same stat.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.status import StatusEffect, StatusType

logger = get_logger(__name__)


class StackRule(str, Enum):
    STACK = "stack"
    REFRESH = "refresh"
    IGNORE = "ignore"


DEFAULT_STACK_RULES: Dict[StatusType, StackRule] = {
    StatusType.POISON: StackRule.STACK,
    StatusType.BURN: StackRule.REFRESH,
    StatusType.FREEZE: StackRule.IGNORE,
    StatusType.STUN: StackRule.IGNORE,
    StatusType.CURSE: StackRule.REFRESH,
    StatusType.BUFF: StackRule.STACK,
    StatusType.DEBUFF: StackRule.STACK,
}


def load_stack_rules(raw: Mapping[str, str]) -> Dict[StatusType, StackRule]:
    rules = dict(DEFAULT_STACK_RULES)
    for type_name, rule_name in raw.items():
        try:
            rules[StatusType(type_name)] = StackRule(rule_name)
        except ValueError:
            logger.warning(
                "Ignoring invalid stacking rule",
                extra={"status_type": type_name, "rule": rule_name},
            )
    return rules


def _collides(existing: StatusEffect, incoming: StatusEffect) -> bool:
    if existing.type is not incoming.type or existing.expired:
        return False
    if incoming.type.modifies_stats:
        return existing.stat_affected == incoming.stat_affected
    return True


def merge_status(
    statuses: List[StatusEffect],
    incoming: StatusEffect,
    rule: StackRule,
) -> Tuple[List[StatusEffect], Optional[StatusEffect]]:
    """
    Apply `incoming` under `rule`.

    Returns the new status list and the status that ended up active for the
    incoming application (None when it was ignored).
    """
    index = next((i for i, s in enumerate(statuses) if _collides(s, incoming)), None)

    if index is None or rule is StackRule.STACK:
        return [*statuses, incoming], incoming
    if rule is StackRule.IGNORE:
        return list(statuses), None

    merged = statuses[index].refreshed(incoming)
    updated = list(statuses)
    updated[index] = merged
    return updated, merged
