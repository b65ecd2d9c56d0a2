"""
DungeonProgressService - per-player dungeon clear tracking
==========================================================

Handles:
- First-clear detection (gates first-clear-only loot and bonus gold)
- Clear counting per dungeon
- Milestone unlocks on total clears across all dungeons

Clear counts live in the host's RecordStore under the `dungeon_progress`
namespace, one record per player.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.dungeon import DungeonProgress, Milestone
from lifequest.modules.loot.dungeons import DungeonCatalog
from lifequest.modules.shared.base_service import BaseService, Clock
from lifequest.modules.shared.repository import RecordRepository, RecordStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClearRecord:
    dungeon_id: str
    first_clear: bool
    clears: int
    total_clears: int
    milestones: Tuple[Milestone, ...] = ()

    @property
    def milestone_gold(self) -> int:
        return sum(m.gold for m in self.milestones)


class DungeonProgressService(BaseService):
    NAMESPACE = "dungeon_progress"

    def __init__(
        self,
        store: RecordStore,
        config_manager: ConfigManager,
        catalog: DungeonCatalog,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock)
        self._catalog = catalog
        self._repo = RecordRepository(store, self.NAMESPACE, DungeonProgress, factory=DungeonProgress)
        self.log.info(
            "DungeonProgressService initialized",
            extra={"milestones": [m.clears for m in catalog.milestones]},
        )

    def get_progress(self, player_id: str) -> DungeonProgress:
        return self._repo.load(player_id)

    def is_first_clear(self, player_id: str, dungeon_id: str) -> bool:
        return self.get_progress(player_id).count(dungeon_id) == 0

    def record_clear(self, player_id: str, dungeon_id: str) -> ClearRecord:
        """Count one clear and report any milestones it unlocked."""
        before = self.get_progress(player_id)
        after = before.with_clear(dungeon_id)
        self._repo.save(player_id, after)

        unlocked = tuple(
            m for m in self._catalog.milestones
            if before.total_clears < m.clears <= after.total_clears
        )
        record = ClearRecord(
            dungeon_id=dungeon_id,
            first_clear=before.count(dungeon_id) == 0,
            clears=after.count(dungeon_id),
            total_clears=after.total_clears,
            milestones=unlocked,
        )

        self.log_operation(
            "dungeon.clear",
            player_id=player_id,
            dungeon_id=dungeon_id,
            first_clear=record.first_clear,
            clears=record.clears,
        )
        for milestone in unlocked:
            self.log_operation(
                "dungeon.milestone",
                player_id=player_id,
                title=milestone.title,
                clears=milestone.clears,
                gold=milestone.gold,
            )
        return record
