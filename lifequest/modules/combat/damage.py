"""
Damage Resolver
===============

Purpose
-------
Resolve a single attack between two stat snapshots.

Domain
------
Steps, in order:

1. Evasion roll against the defender's evasion (capped at max_evasion);
   a hit that is evaded deals 0 and stops here.
2. Base damage: attack - defense * (1 - penetration / 100), at least
   min_damage. Skill power scales the result.
3. Variance: uniform additive jitter in +/- damage_variation / 2.
4. Critical roll at base critical_chance + attacker critical_chance
   (capped at max_critical_chance). The multiplier is the attacker's
   critical_damage / 100 when set, else critical_multiplier, capped at
   max_critical_multiplier.
5. Strong-attack roll at strong_attack_chance, x strong_attack_multiplier.
   Compounds with a critical unless strong_attack_stacks_with_critical is
   off, in which case it is not rolled after a critical.
6. Curse: an attacker under curse deals x curse_damage_reduction.
7. Element multiplier.
8. Floor to an integer, at least min_damage.
9. Life steal owed to the attacker: floor(final * life_steal / 100).

Design Decisions
----------------
- Pure with respect to combatants: nothing is mutated, the caller applies
  damage and life steal.
- None stats are programmer errors and raise TypeError.
- Percent chances go through RandomSource.chance, so a 0% chance never
  consumes a roll and 100% always fires.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.combatant import CombatantStats
from lifequest.domain.models.status import StatusEffect, StatusType
from lifequest.modules.combat.elements import ElementResolver
from lifequest.modules.rng.random_source import RandomSource

logger = get_logger(__name__)


# ============================================================================
# Data Models
# ============================================================================


@dataclass(frozen=True)
class DamageOutcome:
    final_damage: int
    is_critical: bool = False
    is_strong: bool = False
    is_miss: bool = False
    base_damage: int = 0
    element_multiplier: float = 1.0
    life_steal: int = 0

    @classmethod
    def miss(cls) -> "DamageOutcome":
        return cls(final_damage=0, is_miss=True)


# ============================================================================
# DamageResolver
# ============================================================================


class DamageResolver:
    """
    Configuration Keys
    ------------------
    - battle.min_damage (default: 1)
    - battle.damage_variation (default: 10)
    - battle.critical_chance / battle.max_critical_chance (default: 5 / 50)
    - battle.critical_multiplier / battle.max_critical_multiplier (1.5 / 3.0)
    - battle.strong_attack_chance / battle.strong_attack_multiplier (20 / 1.5)
    - battle.strong_attack_stacks_with_critical (default: true)
    - battle.curse_damage_reduction (default: 0.7)
    - battle.max_evasion (default: 100)
    """

    def __init__(
        self,
        element_resolver: ElementResolver,
        rng: RandomSource,
        config_manager: ConfigManager,
    ) -> None:
        self._elements = element_resolver
        self._rng = rng

        get = config_manager.get
        self._min_damage = max(0, int(get("battle.min_damage", 1)))
        self._variation = max(0.0, float(get("battle.damage_variation", 10)))
        self._crit_chance = float(get("battle.critical_chance", 5))
        self._max_crit_chance = float(get("battle.max_critical_chance", 50))
        self._crit_mult = float(get("battle.critical_multiplier", 1.5))
        self._max_crit_mult = float(get("battle.max_critical_multiplier", 3.0))
        self._strong_chance = float(get("battle.strong_attack_chance", 20))
        self._strong_mult = float(get("battle.strong_attack_multiplier", 1.5))
        self._strong_stacks = bool(get("battle.strong_attack_stacks_with_critical", True))
        self._curse_reduction = float(get("battle.curse_damage_reduction", 0.7))
        self._max_evasion = float(get("battle.max_evasion", 100))

        logger.info(
            "DamageResolver initialized",
            extra={
                "damage_variation": self._variation,
                "critical_chance": self._crit_chance,
                "max_critical_chance": self._max_crit_chance,
                "critical_multiplier": self._crit_mult,
                "strong_attack_chance": self._strong_chance,
                "strong_attack_multiplier": self._strong_mult,
                "curse_damage_reduction": self._curse_reduction,
            },
        )

    def critical_chance_for(self, attacker: CombatantStats) -> float:
        return min(self._crit_chance + attacker.critical_chance, self._max_crit_chance)

    def critical_multiplier_for(self, attacker: CombatantStats) -> float:
        multiplier = attacker.critical_damage / 100 if attacker.critical_damage > 0 else self._crit_mult
        return min(multiplier, self._max_crit_mult)

    def resolve(
        self,
        attacker: CombatantStats,
        defender: CombatantStats,
        attacker_statuses: Iterable[StatusEffect] = (),
        attacker_element: Optional[str] = None,
        defender_element: Optional[str] = None,
        power: float = 1.0,
    ) -> DamageOutcome:
        """
        Resolve one hit of `attacker` on `defender`.

        Raises:
            TypeError: attacker or defender is not a CombatantStats
        """
        if not isinstance(attacker, CombatantStats) or not isinstance(defender, CombatantStats):
            raise TypeError(
                "DamageResolver.resolve requires CombatantStats for attacker and defender, "
                f"got {type(attacker).__name__} and {type(defender).__name__}"
            )

        if self._rng.chance(min(defender.evasion, self._max_evasion)):
            logger.debug("Attack evaded", extra={"evasion": defender.evasion})
            return DamageOutcome.miss()

        penetration = min(attacker.penetration, 100.0)
        effective_defense = defender.defense * (1 - penetration / 100)
        base = max(float(self._min_damage), attacker.attack - effective_defense)
        damage = base * max(0.0, power)

        if self._variation > 0:
            half = self._variation / 2
            damage += self._rng.uniform(-half, half)

        is_critical = self._rng.chance(self.critical_chance_for(attacker))
        if is_critical:
            damage *= self.critical_multiplier_for(attacker)

        is_strong = False
        if self._strong_stacks or not is_critical:
            is_strong = self._rng.chance(self._strong_chance)
            if is_strong:
                damage *= self._strong_mult

        if any(s.type is StatusType.CURSE and not s.expired for s in attacker_statuses):
            damage *= self._curse_reduction

        element_multiplier = self._elements.get_multiplier(attacker_element, defender_element)
        damage *= element_multiplier

        final = max(self._min_damage, int(math.floor(damage)))
        life_steal = int(final * attacker.life_steal / 100)

        logger.debug(
            "Damage resolved",
            extra={
                "base": base,
                "final": final,
                "critical": is_critical,
                "strong": is_strong,
                "element_multiplier": element_multiplier,
            },
        )
        return DamageOutcome(
            final_damage=final,
            is_critical=is_critical,
            is_strong=is_strong,
            base_damage=int(base),
            element_multiplier=element_multiplier,
            life_steal=life_steal,
        )
