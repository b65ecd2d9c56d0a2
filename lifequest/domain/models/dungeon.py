"""
Dungeon definitions, monster templates and per-player dungeon progress.

DungeonDefinition and MonsterSpec are static table rows. DungeonProgress is
the host-persisted clear counter used for first-clear gating and milestones.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from lifequest.domain.models.base import validate_not_empty
from lifequest.domain.models.combatant import CombatantStats


@dataclass(frozen=True)
class DropEntry:
    """One configured loot line; `drop_rate` is a percentage."""

    item_id: str
    drop_rate: float
    min_quantity: int = 1
    max_quantity: int = 1
    first_clear_only: bool = False

    def __post_init__(self) -> None:
        validate_not_empty(self.item_id, "item_id")
        object.__setattr__(self, "drop_rate", min(100.0, max(0.0, float(self.drop_rate))))
        low, high = sorted((max(1, int(self.min_quantity)), max(1, int(self.max_quantity))))
        object.__setattr__(self, "min_quantity", low)
        object.__setattr__(self, "max_quantity", high)


@dataclass(frozen=True)
class MonsterSpec:
    """Template a monster instance is spawned from (fresh health each spawn)."""

    name: str
    stats: CombatantStats
    abilities: Tuple[str, ...] = ()
    element: str = "neutral"
    exp_reward: int = 0
    gold_reward: int = 0
    monster_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], monster_id: Optional[str] = None) -> "MonsterSpec":
        return cls(
            name=str(data.get("name") or monster_id or "Monster"),
            stats=CombatantStats.from_dict(data.get("stats") or {}),
            abilities=tuple(data.get("abilities") or ()),
            element=str(data.get("element") or "neutral"),
            exp_reward=max(0, int(data.get("exp_reward", 0))),
            gold_reward=max(0, int(data.get("gold_reward", 0))),
            monster_id=monster_id,
        )


@dataclass(frozen=True)
class DifficultyScaling:
    """
    Multipliers one difficulty tier applies on top of the raw tables.

    `health` scales max health, `stats` scales attack and defense, `gold`
    scales the rolled clear gold and `drop_rate` scales every drop chance.
    """

    health: float = 1.0
    stats: float = 1.0
    gold: float = 1.0
    drop_rate: float = 1.0

    def __post_init__(self) -> None:
        for name in ("health", "stats", "gold", "drop_rate"):
            object.__setattr__(self, name, max(0.0, float(getattr(self, name))))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DifficultyScaling":
        keys = ("health", "stats", "gold", "drop_rate")
        return cls(**{k: data[k] for k in keys if data.get(k) is not None})

    def apply(self, spec: MonsterSpec) -> MonsterSpec:
        stats = (
            spec.stats.scaled("max_health", self.health)
            .scaled("attack", self.stats)
            .scaled("defense", self.stats)
            .fresh()
        )
        return replace(spec, stats=stats)


@dataclass(frozen=True)
class DungeonDefinition:
    dungeon_id: str
    name: str
    difficulty: str = "normal"
    recommended_level: int = 1
    clear_gold: Tuple[int, int] = (0, 0)
    clear_experience: int = 0
    first_clear_bonus_gold: int = 0
    stages: Tuple[Tuple[str, ...], ...] = ()
    drops: Tuple[DropEntry, ...] = ()


@dataclass(frozen=True)
class Milestone:
    clears: int
    title: str
    gold: int = 0


@dataclass(frozen=True)
class DungeonProgress:
    """Clear counts per dungeon for one player."""

    clears: Dict[str, int] = field(default_factory=dict)

    def count(self, dungeon_id: str) -> int:
        return self.clears.get(dungeon_id, 0)

    @property
    def total_clears(self) -> int:
        return sum(self.clears.values())

    def with_clear(self, dungeon_id: str) -> "DungeonProgress":
        updated = dict(self.clears)
        updated[dungeon_id] = updated.get(dungeon_id, 0) + 1
        return DungeonProgress(clears=updated)

    def to_dict(self) -> Dict[str, Any]:
        return {"clears": dict(self.clears)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DungeonProgress":
        raw = data.get("clears") or {}
        clears: Dict[str, int] = {}
        if isinstance(raw, Mapping):
            for key, value in raw.items():
                try:
                    clears[str(key)] = max(0, int(value))
                except (TypeError, ValueError):
                    continue
        return cls(clears=clears)
