"""
Dungeon catalog built from `dungeons.yaml`.

Malformed rows are skipped with a warning so one bad table entry never takes
the whole catalog down.

Monsters come out of `stages_for` already scaled by their dungeon's
difficulty tier (`difficulty_multipliers`); the bestiary rows stay raw.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.base import DomainValidationError
from lifequest.domain.models.dungeon import (
    DifficultyScaling,
    DropEntry,
    DungeonDefinition,
    Milestone,
    MonsterSpec,
)

logger = get_logger(__name__)


def _gold_range(raw: Any) -> Tuple[int, int]:
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        low, high = sorted((max(0, int(raw[0])), max(0, int(raw[1]))))
        return low, high
    if raw is None:
        return 0, 0
    value = max(0, int(raw))
    return value, value


class DungeonCatalog:
    """Read-only lookup of dungeons, monsters and clear milestones."""

    def __init__(self, config_manager: ConfigManager) -> None:
        self._monsters: Dict[str, MonsterSpec] = {}
        for monster_id, row in config_manager.section("monsters").items():
            try:
                self._monsters[monster_id] = MonsterSpec.from_dict(row or {}, monster_id)
            except (TypeError, ValueError, AttributeError) as exc:
                logger.warning(
                    "Skipping malformed monster",
                    extra={"monster_id": monster_id, "error": str(exc)},
                )

        self._scaling: Dict[str, DifficultyScaling] = {}
        for difficulty, row in config_manager.section("difficulty_multipliers").items():
            try:
                self._scaling[str(difficulty)] = DifficultyScaling.from_dict(row)
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed difficulty multipliers",
                    extra={"difficulty": difficulty, "error": str(exc)},
                )

        self._dungeons: Dict[str, DungeonDefinition] = {}
        for dungeon_id, row in config_manager.section("dungeons").items():
            definition = self._parse_dungeon(dungeon_id, row)
            if definition is not None:
                self._dungeons[dungeon_id] = definition

        self._milestones: List[Milestone] = sorted(
            (
                Milestone(
                    clears=max(1, int(m["clears"])),
                    title=str(m.get("title", "")),
                    gold=max(0, int(m.get("gold", 0))),
                )
                for m in config_manager.get("milestones", [])
                if isinstance(m, Mapping) and "clears" in m
            ),
            key=lambda m: m.clears,
        )

        logger.info(
            "DungeonCatalog initialized",
            extra={
                "dungeons": len(self._dungeons),
                "monsters": len(self._monsters),
                "difficulties": sorted(self._scaling),
                "milestones": len(self._milestones),
            },
        )

    def _parse_dungeon(self, dungeon_id: str, row: Any) -> Optional[DungeonDefinition]:
        if not isinstance(row, Mapping):
            logger.warning("Skipping malformed dungeon", extra={"dungeon_id": dungeon_id})
            return None

        drops: List[DropEntry] = []
        for entry in row.get("drops") or []:
            try:
                drops.append(
                    DropEntry(
                        item_id=str(entry.get("item_id", "")),
                        drop_rate=entry.get("drop_rate", 0),
                        min_quantity=entry.get("min_quantity", 1),
                        max_quantity=entry.get("max_quantity", entry.get("min_quantity", 1)),
                        first_clear_only=bool(entry.get("first_clear_only", False)),
                    )
                )
            except (AttributeError, TypeError, ValueError, DomainValidationError) as exc:
                logger.warning(
                    "Skipping malformed drop entry",
                    extra={"dungeon_id": dungeon_id, "entry": entry, "error": str(exc)},
                )

        stages = tuple(
            tuple(str(monster_id) for monster_id in stage)
            for stage in row.get("stages") or []
            if isinstance(stage, (list, tuple)) and stage
        )

        return DungeonDefinition(
            dungeon_id=dungeon_id,
            name=str(row.get("name", dungeon_id)),
            difficulty=str(row.get("difficulty", "normal")),
            recommended_level=max(1, int(row.get("recommended_level", 1))),
            clear_gold=_gold_range(row.get("clear_gold")),
            clear_experience=max(0, int(row.get("clear_experience", 0))),
            first_clear_bonus_gold=max(0, int(row.get("first_clear_bonus_gold", 0))),
            stages=stages,
            drops=tuple(drops),
        )

    # ========================================================================
    # Lookups
    # ========================================================================

    def get(self, dungeon_id: str) -> Optional[DungeonDefinition]:
        return self._dungeons.get(dungeon_id)

    def dungeon_ids(self) -> List[str]:
        return list(self._dungeons)

    def monster(self, monster_id: str) -> Optional[MonsterSpec]:
        """Raw bestiary row, before any difficulty scaling."""
        return self._monsters.get(monster_id)

    def scaling_for(self, difficulty: str) -> DifficultyScaling:
        return self._scaling.get(difficulty) or DifficultyScaling()

    def stages_for(self, dungeon_id: str) -> List[List[MonsterSpec]]:
        """Scaled monster templates per stage; unknown monster ids are skipped."""
        definition = self._dungeons.get(dungeon_id)
        if definition is None:
            return []
        scaling = self.scaling_for(definition.difficulty)

        stages: List[List[MonsterSpec]] = []
        for stage in definition.stages:
            monsters: List[MonsterSpec] = []
            for monster_id in stage:
                spec = self._monsters.get(monster_id)
                if spec is None:
                    logger.warning(
                        "Unknown monster in stage",
                        extra={"dungeon_id": dungeon_id, "monster_id": monster_id},
                    )
                    continue
                monsters.append(scaling.apply(spec))
            if monsters:
                stages.append(monsters)
        return stages

    @property
    def milestones(self) -> List[Milestone]:
        return list(self._milestones)
