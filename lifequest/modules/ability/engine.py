"""
Ability & Status Engine
=======================

Purpose
-------
Evaluate monster ability triggers on combat events, apply ability and skill
effects to combatants, and run end-of-round status and cooldown processing.

Domain
------
- Trigger evaluation: cooldown gate, one chance roll per ready ability
- Effect application: direct damage/heal, life drain, multi-hit, timed
  statuses (poison, burn, freeze, stun, curse, buff, debuff)
- Same-type status stacking per configured StackRule
- End of round: periodic damage first, then duration decrement and expiry,
  then ability cooldown decrement

Design Decisions
----------------
- Below-half-health triggers fire only while the owner is at or below half
  health, and only once per battle unless the ability is repeatable.
- Freeze and stun are consumed by the action they block
  (`consume_action_blocker`), not by the end-of-round decrement. A freeze
  landed during the monster's turn therefore still costs the player the
  next action.
- An ability id missing from the registry is skipped with a warning, as if
  the monster had no such ability.
- Direct ability damage ignores defense; it is the effect's own number.

Dependencies
------------
- AbilityRegistry: static definitions
- RandomSource: chance rolls
- ConfigManager: battle.status_stacking, battle.special_abilities_enabled
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.ability import (
    AbilityEffect,
    AbilityTrigger,
    EffectKind,
    EffectTarget,
    MonsterAbility,
)
from lifequest.domain.models.combatant import Combatant
from lifequest.domain.models.status import StatusEffect, StatusType
from lifequest.modules.ability.registry import AbilityRegistry
from lifequest.modules.ability.stacking import StackRule, load_stack_rules, merge_status
from lifequest.modules.rng.random_source import RandomSource

logger = get_logger(__name__)

DEFAULT_HEAL_RATIO = 0.3
DEFAULT_DRAIN_RATIO = 0.5
DEFAULT_MULTI_HIT = 2

_STATUS_KINDS = {
    EffectKind.POISON: StatusType.POISON,
    EffectKind.BURN: StatusType.BURN,
    EffectKind.FREEZE: StatusType.FREEZE,
    EffectKind.STUN: StatusType.STUN,
    EffectKind.CURSE: StatusType.CURSE,
    EffectKind.BUFF: StatusType.BUFF,
    EffectKind.DEBUFF: StatusType.DEBUFF,
}


# ============================================================================
# Results
# ============================================================================


@dataclass(frozen=True)
class EffectReport:
    """
    What a batch of effects did to the battle.

    Damage and healing are kept as `(combatant_id, amount)` pairs in the
    order they happened; one batch can touch both sides.
    """

    damage_taken: Tuple[Tuple[str, int], ...] = ()
    healing: Tuple[Tuple[str, int], ...] = ()
    extra_hits: int = 0
    statuses: Tuple[StatusEffect, ...] = ()

    @property
    def damage(self) -> int:
        return sum(amount for _, amount in self.damage_taken)

    @property
    def healed(self) -> int:
        return sum(amount for _, amount in self.healing)

    def merged(self, other: "EffectReport") -> "EffectReport":
        return EffectReport(
            damage_taken=self.damage_taken + other.damage_taken,
            healing=self.healing + other.healing,
            extra_hits=self.extra_hits + other.extra_hits,
            statuses=self.statuses + other.statuses,
        )


@dataclass(frozen=True)
class AbilityActivation:
    ability: MonsterAbility
    owner_id: str
    owner_name: str
    report: EffectReport


@dataclass(frozen=True)
class StatusTick:
    combatant_id: str
    combatant_name: str
    status_type: StatusType
    damage: int


# ============================================================================
# AbilityEngine
# ============================================================================


class AbilityEngine:
    """
    Stateless rules over battle-owned combatant records.

    All mutable state (health, statuses, cooldowns) lives on the Combatant
    passed in, so one engine serves any number of battles.
    """

    def __init__(
        self,
        registry: AbilityRegistry,
        rng: RandomSource,
        config_manager: ConfigManager,
    ) -> None:
        self._registry = registry
        self._rng = rng
        self._enabled = bool(config_manager.get("battle.special_abilities_enabled", True))
        self._stack_rules = load_stack_rules(config_manager.section("battle.status_stacking"))

        logger.info(
            "AbilityEngine initialized",
            extra={
                "abilities": len(registry),
                "special_abilities_enabled": self._enabled,
                "status_stacking": {k.value: v.value for k, v in self._stack_rules.items()},
            },
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def stack_rule(self, status_type: StatusType) -> StackRule:
        return self._stack_rules.get(status_type, StackRule.STACK)

    # ========================================================================
    # PUBLIC API - Triggers
    # ========================================================================

    def evaluate(
        self,
        trigger: AbilityTrigger,
        owner: Combatant,
        opponent: Combatant,
    ) -> List[AbilityActivation]:
        """Roll every ready ability of `owner` bound to `trigger`."""
        if not self._enabled or not owner.is_alive:
            return []

        activations: List[AbilityActivation] = []
        for state in owner.abilities:
            ability = self._registry.get(state.ability_id)
            if ability is None:
                logger.warning(
                    "Ability definition missing, skipping",
                    extra={"ability_id": state.ability_id, "combatant": owner.combatant_id},
                )
                continue
            if ability.trigger is not trigger or not state.ready:
                continue
            if trigger is AbilityTrigger.ON_BELOW_HALF_HP and owner.health * 2 > owner.max_health:
                continue
            if not self._rng.chance(ability.chance):
                continue

            report = self.apply_effects(ability.effects, owner, opponent, source=ability.id)
            state.start_cooldown(ability.cooldown_turns)
            if ability.once_per_battle:
                state.exhausted = True

            logger.debug(
                "Ability triggered",
                extra={
                    "ability_id": ability.id,
                    "trigger": trigger.value,
                    "combatant": owner.combatant_id,
                    "damage": report.damage,
                    "healed": report.healed,
                },
            )
            activations.append(
                AbilityActivation(
                    ability=ability,
                    owner_id=owner.combatant_id,
                    owner_name=owner.name,
                    report=report,
                )
            )
        return activations

    # ========================================================================
    # PUBLIC API - Effects
    # ========================================================================

    def apply_effects(
        self,
        effects: Sequence[AbilityEffect],
        owner: Combatant,
        opponent: Combatant,
        source: Optional[str] = None,
    ) -> EffectReport:
        report = EffectReport()
        for effect in effects:
            target = owner if effect.target is EffectTarget.SELF else opponent
            report = report.merged(self._apply_effect(effect, owner, target, source))
        return report

    def _apply_effect(
        self,
        effect: AbilityEffect,
        owner: Combatant,
        target: Combatant,
        source: Optional[str],
    ) -> EffectReport:
        kind = effect.kind

        if kind is EffectKind.DAMAGE:
            base = effect.value if effect.value is not None else owner.effective_stats().attack
            amount = int(base * (effect.multiplier if effect.multiplier is not None else 1.0))
            return EffectReport(damage_taken=((target.combatant_id, target.take_damage(amount)),))

        if kind is EffectKind.HEAL:
            if effect.value is not None:
                amount = effect.value
            else:
                ratio = effect.multiplier if effect.multiplier is not None else DEFAULT_HEAL_RATIO
                amount = int(target.max_health * ratio)
            if not target.is_alive:
                return EffectReport()
            return EffectReport(healing=((target.combatant_id, target.heal(amount)),))

        if kind is EffectKind.LIFE_DRAIN:
            ratio = effect.multiplier if effect.multiplier is not None else DEFAULT_DRAIN_RATIO
            removed = target.take_damage(int(owner.effective_stats().attack * ratio))
            return EffectReport(
                damage_taken=((target.combatant_id, removed),),
                healing=((owner.combatant_id, owner.heal(removed)),),
            )

        if kind is EffectKind.MULTI_HIT:
            hits = effect.value if effect.value is not None else DEFAULT_MULTI_HIT
            return EffectReport(extra_hits=max(0, hits - 1))

        status_type = _STATUS_KINDS[kind]
        if status_type.modifies_stats and (effect.stat is None or effect.multiplier is None):
            logger.warning(
                "Stat modifier without stat or multiplier, skipping",
                extra={"source": source, "kind": kind.value},
            )
            return EffectReport()
        if not target.is_alive:
            return EffectReport()

        status = StatusEffect(
            type=status_type,
            target=target.combatant_id,
            value=effect.value or 0,
            duration_turns=effect.duration if effect.duration is not None else 1,
            stat_affected=effect.stat,
            multiplier=effect.multiplier,
            source=source,
        )
        applied = self.apply_status(target, status)
        return EffectReport(statuses=(applied,) if applied is not None else ())

    def apply_status(self, target: Combatant, status: StatusEffect) -> Optional[StatusEffect]:
        """Attach `status` under its type's stacking rule; None if ignored."""
        if status.expired:
            return None
        target.statuses, applied = merge_status(
            target.statuses, status, self.stack_rule(status.type)
        )
        if applied is None:
            logger.debug(
                "Status ignored, already active",
                extra={"combatant": target.combatant_id, "status": status.type.value},
            )
        return applied

    def consume_action_blocker(self, combatant: Combatant) -> Optional[StatusEffect]:
        """Spend one turn of the freeze/stun blocking `combatant`, if any."""
        blocker = combatant.action_blocker()
        if blocker is None:
            return None

        remaining: List[StatusEffect] = []
        consumed = False
        for status in combatant.statuses:
            if not consumed and status is blocker:
                consumed = True
                status = status.ticked()
            if not status.expired:
                remaining.append(status)
        combatant.statuses = remaining
        return blocker

    # ========================================================================
    # PUBLIC API - Round boundary
    # ========================================================================

    def end_of_round(self, combatants: Iterable[Combatant]) -> List[StatusTick]:
        ticks: List[StatusTick] = []
        for combatant in combatants:
            if combatant.is_alive:
                for status in combatant.statuses:
                    if not combatant.is_alive:
                        break
                    if status.periodic_damage <= 0 or status.expired:
                        continue
                    dealt = combatant.take_damage(status.periodic_damage)
                    ticks.append(
                        StatusTick(
                            combatant_id=combatant.combatant_id,
                            combatant_name=combatant.name,
                            status_type=status.type,
                            damage=dealt,
                        )
                    )

            combatant.statuses = [
                ticked
                for ticked in (
                    s if s.type.prevents_action else s.ticked() for s in combatant.statuses
                )
                if not ticked.expired
            ]
            for state in combatant.abilities:
                state.tick()
        return ticks
