"""
Monster ability definitions and per-monster runtime ability state.

Definitions are static and loaded from the ability table; AbilityState is the
mutable cooldown tracker attached to one monster instance for one battle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AbilityTrigger(str, Enum):
    ON_ATTACK = "on_attack"
    ON_HIT = "on_hit"
    ON_TURN_START = "on_turn_start"
    ON_TURN_END = "on_turn_end"
    ON_BELOW_HALF_HP = "on_below_half_hp"


class EffectKind(str, Enum):
    DAMAGE = "damage"
    HEAL = "heal"
    LIFE_DRAIN = "life_drain"
    MULTI_HIT = "multi_hit"
    POISON = "poison"
    BURN = "burn"
    FREEZE = "freeze"
    STUN = "stun"
    CURSE = "curse"
    BUFF = "buff"
    DEBUFF = "debuff"


class EffectTarget(str, Enum):
    SELF = "self"
    OPPONENT = "opponent"


@dataclass(frozen=True)
class AbilityEffect:
    kind: EffectKind
    target: EffectTarget = EffectTarget.OPPONENT
    value: Optional[int] = None
    duration: Optional[int] = None
    stat: Optional[str] = None
    multiplier: Optional[float] = None


@dataclass(frozen=True)
class MonsterAbility:
    """
    Static ability definition.

    `chance` is a percentage compared against one roll in [0, 100).
    `cooldown_turns` of None means the ability can fire on every qualifying
    event. `once_per_battle` defaults to True for below-half-HP triggers.
    """

    id: str
    name: str
    trigger: AbilityTrigger
    chance: float
    effects: Tuple[AbilityEffect, ...]
    cooldown_turns: Optional[int] = None
    once_per_battle: bool = False
    description: str = ""


@dataclass
class AbilityState:
    ability_id: str
    turns_until_ready: int = 0
    exhausted: bool = False

    @property
    def ready(self) -> bool:
        return not self.exhausted and self.turns_until_ready <= 0

    def start_cooldown(self, turns: Optional[int]) -> None:
        self.turns_until_ready = max(0, int(turns or 0))

    def tick(self) -> None:
        self.turns_until_ready = max(0, self.turns_until_ready - 1)
