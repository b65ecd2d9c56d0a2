"""
Combatant Domain Models
=======================

Purpose
-------
Immutable stat snapshots and the per-battle combatant record that holds them.

Domain
------
- CombatantStats: frozen snapshot of the ten combat stats
- Combatant: one player or monster inside one battle (health, statuses,
  ability cooldowns)
- apply_stat_modifiers: derive the effective snapshot from active buffs and
  debuffs without touching the base values

Design Decisions
----------------
- Snapshots are frozen; every change produces a new CombatantStats.
- Invalid numbers are clamped, never rejected: health lives in
  [0, max_health] and every other stat is floored at 0.
- Percent stats (critical_chance, evasion, penetration, life_steal) are
  expressed in percentage points; critical_damage is a percentage multiplier
  (150 means x1.5, 0 means "use the configured baseline").
- A Combatant at zero health is dead and takes no further turns.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from lifequest.domain.models.ability import AbilityState
from lifequest.domain.models.status import (
    STAT_ALIASES,
    StatusEffect,
    StatusType,
    normalize_stat_name,
)

_CAMEL_FIELDS = {
    "currentHealth": "current_health",
    "maxHealth": "max_health",
}


# ============================================================================
# CombatantStats
# ============================================================================


@dataclass(frozen=True)
class CombatantStats:
    max_health: int
    current_health: Optional[int] = None
    attack: int = 0
    defense: int = 0
    attack_speed: float = 100.0
    critical_chance: float = 0.0
    critical_damage: float = 0.0
    evasion: float = 0.0
    penetration: float = 0.0
    life_steal: float = 0.0

    def __post_init__(self) -> None:
        max_health = max(0, int(self.max_health))
        current = max_health if self.current_health is None else int(self.current_health)
        object.__setattr__(self, "max_health", max_health)
        object.__setattr__(self, "current_health", min(max(current, 0), max_health))
        object.__setattr__(self, "attack", max(0, int(self.attack)))
        object.__setattr__(self, "defense", max(0, int(self.defense)))
        for name in ("attack_speed", "critical_chance", "critical_damage",
                     "evasion", "penetration", "life_steal"):
            object.__setattr__(self, name, max(0.0, float(getattr(self, name))))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CombatantStats":
        """Build from snake_case or camelCase keys; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_FIELDS.get(key) or STAT_ALIASES.get(key, key)
            if name in known and value is not None:
                values[name] = value
        values.setdefault("max_health", 1)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def is_dead(self) -> bool:
        return self.current_health <= 0

    @property
    def health_ratio(self) -> float:
        if self.max_health <= 0:
            return 0.0
        return self.current_health / self.max_health

    def with_health(self, value: int) -> "CombatantStats":
        return replace(self, current_health=value)

    def fresh(self) -> "CombatantStats":
        """Same snapshot at full health."""
        return replace(self, current_health=self.max_health)

    def scaled(self, stat: str, multiplier: float) -> "CombatantStats":
        """Multiply one stat; current health keeps its value but stays in range."""
        stat = normalize_stat_name(stat) or stat
        if stat not in MODIFIABLE_STATS:
            return self
        return replace(self, **{stat: getattr(self, stat) * multiplier})

    def plus(self, stat: str, amount: float) -> "CombatantStats":
        stat = normalize_stat_name(stat) or stat
        if stat not in MODIFIABLE_STATS:
            return self
        return replace(self, **{stat: getattr(self, stat) + amount})


MODIFIABLE_STATS = (
    "max_health",
    "attack",
    "defense",
    "attack_speed",
    "critical_chance",
    "critical_damage",
    "evasion",
    "penetration",
    "life_steal",
)


def apply_stat_modifiers(
    stats: CombatantStats, statuses: Iterable[StatusEffect]
) -> CombatantStats:
    """Derived snapshot with every active buff/debuff multiplier compounded."""
    effective = stats
    for status in statuses:
        if not status.type.modifies_stats or status.expired:
            continue
        if status.stat_affected is None or status.multiplier is None:
            continue
        effective = effective.scaled(status.stat_affected, status.multiplier)
    return effective


# ============================================================================
# Combatant
# ============================================================================


class CombatantSide(str, Enum):
    PLAYER = "player"
    MONSTER = "monster"


@dataclass
class Combatant:
    """
    One participant in one battle.

    `stats` carries base values plus current health; statuses and ability
    cooldowns are owned exclusively by this record for the battle's lifetime.
    """

    combatant_id: str
    name: str
    side: CombatantSide
    stats: CombatantStats
    element: str = "neutral"
    statuses: List[StatusEffect] = field(default_factory=list)
    abilities: List[AbilityState] = field(default_factory=list)
    exp_reward: int = 0
    gold_reward: int = 0

    @property
    def is_alive(self) -> bool:
        return not self.stats.is_dead

    @property
    def health(self) -> int:
        return self.stats.current_health

    @property
    def max_health(self) -> int:
        return self.stats.max_health

    def effective_stats(self) -> CombatantStats:
        return apply_stat_modifiers(self.stats, self.statuses)

    def take_damage(self, amount: int) -> int:
        """Apply damage; returns the health actually removed."""
        amount = max(0, int(amount))
        before = self.stats.current_health
        self.stats = self.stats.with_health(before - amount)
        return before - self.stats.current_health

    def heal(self, amount: int) -> int:
        """Restore health up to max; returns the health actually restored."""
        amount = max(0, int(amount))
        before = self.stats.current_health
        self.stats = self.stats.with_health(before + amount)
        return self.stats.current_health - before

    def has_status(self, status_type: StatusType) -> bool:
        return any(s.type is status_type and not s.expired for s in self.statuses)

    def action_blocker(self) -> Optional[StatusEffect]:
        for status in self.statuses:
            if status.type.prevents_action and not status.expired:
                return status
        return None

    def ability_state(self, ability_id: str) -> Optional[AbilityState]:
        for state in self.abilities:
            if state.ability_id == ability_id:
                return state
        return None
