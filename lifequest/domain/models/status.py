"""
Status effect value records.

A StatusEffect is a timed modifier attached to one combatant: damage over
time (poison, burn), turn skipping (freeze, stun), outgoing damage reduction
(curse) or a stat multiplier (buff, debuff). Records are immutable; ticking
or refreshing a status returns a new record.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

# Incoming definitions use the short names from the ability tables.
STAT_ALIASES: Dict[str, str] = {
    "maxHealth": "max_health",
    "maxHp": "max_health",
    "hp": "max_health",
    "attackSpeed": "attack_speed",
    "speed": "attack_speed",
    "criticalChance": "critical_chance",
    "critRate": "critical_chance",
    "criticalDamage": "critical_damage",
    "critDamage": "critical_damage",
    "lifeSteal": "life_steal",
}


def normalize_stat_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    return STAT_ALIASES.get(name, name)


class StatusType(str, Enum):
    POISON = "poison"
    BURN = "burn"
    FREEZE = "freeze"
    STUN = "stun"
    CURSE = "curse"
    BUFF = "buff"
    DEBUFF = "debuff"

    @property
    def is_periodic(self) -> bool:
        return self in (StatusType.POISON, StatusType.BURN)

    @property
    def prevents_action(self) -> bool:
        return self in (StatusType.FREEZE, StatusType.STUN)

    @property
    def modifies_stats(self) -> bool:
        return self in (StatusType.BUFF, StatusType.DEBUFF)


@dataclass(frozen=True)
class StatusEffect:
    """
    Timed modifier on one combatant.

    Negative durations and values are clamped to zero on construction.
    """

    type: StatusType
    target: str
    value: int = 0
    duration_turns: int = 1
    stat_affected: Optional[str] = None
    multiplier: Optional[float] = None
    source: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", StatusType(self.type))
        object.__setattr__(self, "value", max(0, int(self.value)))
        object.__setattr__(self, "duration_turns", max(0, int(self.duration_turns)))
        object.__setattr__(self, "stat_affected", normalize_stat_name(self.stat_affected))

    @property
    def expired(self) -> bool:
        return self.duration_turns <= 0

    @property
    def periodic_damage(self) -> int:
        return self.value if self.type.is_periodic else 0

    def ticked(self) -> "StatusEffect":
        """One turn boundary later."""
        return replace(self, duration_turns=max(0, self.duration_turns - 1))

    def refreshed(self, incoming: "StatusEffect") -> "StatusEffect":
        """Keep the stronger value and the longer remaining duration."""
        return replace(
            self,
            value=max(self.value, incoming.value),
            duration_turns=max(self.duration_turns, incoming.duration_turns),
            multiplier=incoming.multiplier if incoming.multiplier is not None else self.multiplier,
            source=incoming.source or self.source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "target": self.target,
            "value": self.value,
            "duration_turns": self.duration_turns,
            "stat_affected": self.stat_affected,
            "multiplier": self.multiplier,
            "source": self.source,
        }
