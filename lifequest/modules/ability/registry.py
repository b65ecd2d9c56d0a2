"""
Ability registry built from `abilities.yaml`.

Unknown ability ids resolve to None; the engine treats that as "no ability".
Rows that fail to parse are dropped at load time with a warning.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.ability import (
    AbilityEffect,
    AbilityState,
    AbilityTrigger,
    EffectKind,
    EffectTarget,
    MonsterAbility,
)

logger = get_logger(__name__)


def parse_effect(raw: Mapping[str, Any]) -> AbilityEffect:
    """
    Raises:
        ValueError: Unknown effect kind or target
    """
    target = raw.get("target", EffectTarget.OPPONENT.value)
    # "player" is the monster's opponent in older tables.
    if target == "player":
        target = EffectTarget.OPPONENT.value
    value = raw.get("value")
    duration = raw.get("duration")
    multiplier = raw.get("multiplier")
    return AbilityEffect(
        kind=EffectKind(raw["kind"]),
        target=EffectTarget(target),
        value=int(value) if value is not None else None,
        duration=int(duration) if duration is not None else None,
        stat=raw.get("stat"),
        multiplier=float(multiplier) if multiplier is not None else None,
    )


def parse_effects(rows: Iterable[Mapping[str, Any]]) -> Tuple[AbilityEffect, ...]:
    return tuple(parse_effect(row) for row in rows)


class AbilityRegistry:
    """Static monster ability definitions keyed by id."""

    def __init__(self, definitions: Mapping[str, MonsterAbility]) -> None:
        self._abilities: Dict[str, MonsterAbility] = dict(definitions)

    @classmethod
    def from_config(cls, config_manager: ConfigManager) -> "AbilityRegistry":
        abilities: Dict[str, MonsterAbility] = {}
        for ability_id, row in config_manager.section("abilities").items():
            try:
                abilities[ability_id] = cls._parse(ability_id, row)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning(
                    "Skipping malformed ability",
                    extra={"ability_id": ability_id, "error": str(exc)},
                )

        logger.info("AbilityRegistry initialized", extra={"abilities": sorted(abilities)})
        return cls(abilities)

    @staticmethod
    def _parse(ability_id: str, row: Mapping[str, Any]) -> MonsterAbility:
        trigger = AbilityTrigger(row["trigger"])
        cooldown = row.get("cooldown_turns")
        once = row.get("once_per_battle")
        if once is None:
            once = trigger is AbilityTrigger.ON_BELOW_HALF_HP and not row.get("repeatable", False)
        return MonsterAbility(
            id=ability_id,
            name=str(row.get("name", ability_id)),
            trigger=trigger,
            chance=min(100.0, max(0.0, float(row.get("chance", 0)))),
            effects=parse_effects(row.get("effects") or []),
            cooldown_turns=max(0, int(cooldown)) if cooldown is not None else None,
            once_per_battle=bool(once),
            description=str(row.get("description", "")),
        )

    def get(self, ability_id: str) -> Optional[MonsterAbility]:
        return self._abilities.get(ability_id)

    def __contains__(self, ability_id: object) -> bool:
        return ability_id in self._abilities

    def __len__(self) -> int:
        return len(self._abilities)

    def states_for(self, ability_ids: Iterable[str]) -> List[AbilityState]:
        """Fresh runtime states for a monster; unknown ids are skipped."""
        states: List[AbilityState] = []
        for ability_id in ability_ids:
            if ability_id not in self._abilities:
                logger.warning("Unknown ability id, ignoring", extra={"ability_id": ability_id})
                continue
            states.append(AbilityState(ability_id=ability_id))
        return states
