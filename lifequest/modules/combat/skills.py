"""
Player skill catalog.

A skill is an attack (`power` x the normal hit, repeated `hits` times) and/or
a list of effects resolved through the ability engine. Unknown skill ids fall
back to the default skill so a stale client never stalls a battle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.ability import AbilityEffect
from lifequest.modules.ability.registry import parse_effects

logger = get_logger(__name__)

BASIC_ATTACK_ID = "basic_attack"


@dataclass(frozen=True)
class PlayerSkill:
    id: str
    name: str
    power: float = 1.0
    hits: int = 1
    element: Optional[str] = None
    effects: Tuple[AbilityEffect, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "power", max(0.0, float(self.power)))
        object.__setattr__(self, "hits", max(1, int(self.hits)))

    @property
    def is_attack(self) -> bool:
        return self.power > 0


BASIC_ATTACK = PlayerSkill(id=BASIC_ATTACK_ID, name="Attack")


class SkillCatalog:
    def __init__(self, skills: Dict[str, PlayerSkill], default_skill_id: str = BASIC_ATTACK_ID) -> None:
        self._skills = dict(skills)
        self._skills.setdefault(BASIC_ATTACK_ID, BASIC_ATTACK)
        if default_skill_id not in self._skills:
            logger.warning(
                "Default skill missing from catalog, using basic attack",
                extra={"skill_id": default_skill_id},
            )
            default_skill_id = BASIC_ATTACK_ID
        self._default_id = default_skill_id

    @classmethod
    def from_config(cls, config_manager: ConfigManager) -> "SkillCatalog":
        skills: Dict[str, PlayerSkill] = {}
        for skill_id, row in config_manager.section("skills.catalog").items():
            try:
                skills[skill_id] = PlayerSkill(
                    id=skill_id,
                    name=str(row.get("name", skill_id)),
                    power=row.get("power", 1.0),
                    hits=row.get("hits", 1),
                    element=row.get("element"),
                    effects=parse_effects(row.get("effects") or []),
                )
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning(
                    "Skipping malformed skill",
                    extra={"skill_id": skill_id, "error": str(exc)},
                )

        catalog = cls(skills, str(config_manager.get("skills.default_skill", BASIC_ATTACK_ID)))
        logger.info("SkillCatalog initialized", extra={"skills": len(catalog)})
        return catalog

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._skills

    @property
    def default_skill(self) -> PlayerSkill:
        return self._skills[self._default_id]

    def get(self, skill_id: str) -> Optional[PlayerSkill]:
        return self._skills.get(skill_id)

    def resolve(self, skill_id: Optional[str]) -> PlayerSkill:
        if skill_id is None:
            return self.default_skill
        skill = self._skills.get(skill_id)
        if skill is None:
            logger.warning("Unknown skill id, using default skill", extra={"skill_id": skill_id})
            return self.default_skill
        return skill
