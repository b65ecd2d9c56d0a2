"""
Domain models package for LifeQuest.

Design Notes
------------
- Value records (stats, statuses, items) are frozen dataclasses; every change
  produces a new record.
- Combatant and Battle are the mutable, battle-scoped records that hold them.
"""

from .ability import (
    AbilityEffect,
    AbilityState,
    AbilityTrigger,
    EffectKind,
    EffectTarget,
    MonsterAbility,
)
from .base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
)
from .combatant import (
    Combatant,
    CombatantSide,
    CombatantStats,
    apply_stat_modifiers,
)
from .dungeon import (
    DifficultyScaling,
    DropEntry,
    DungeonDefinition,
    DungeonProgress,
    Milestone,
    MonsterSpec,
)
from .item import Item, ItemBonus, ItemRarity, ItemType, RewardItem
from .status import StatusEffect, StatusType

__all__ = [
    "AbilityEffect",
    "AbilityState",
    "AbilityTrigger",
    "EffectKind",
    "EffectTarget",
    "MonsterAbility",
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Entity",
    "validate_non_negative",
    "validate_not_empty",
    "Combatant",
    "CombatantSide",
    "CombatantStats",
    "apply_stat_modifiers",
    "DifficultyScaling",
    "DropEntry",
    "DungeonDefinition",
    "DungeonProgress",
    "Milestone",
    "MonsterSpec",
    "Item",
    "ItemBonus",
    "ItemRarity",
    "ItemType",
    "RewardItem",
    "StatusEffect",
    "StatusType",
]
