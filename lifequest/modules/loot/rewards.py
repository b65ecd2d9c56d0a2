"""
Reward Calculator
=================

Purpose
-------
Turn a finished battle into experience, gold, consumable drops and
equipment.

Domain
------
- Dungeon drop tables: one independent Bernoulli trial per entry
- First-clear-only entries and first-clear bonus gold
- Repeat clears: drop quantities scaled down (minimum 1, rounded up)
- Optional random equipment drop
- Difficulty tier multipliers on clear gold and drop chances

Design Decisions
----------------
- Drop gating is per entry, not a single weighted roll: several entries may
  drop from the same clear.
- An unknown dungeon yields no drops and a warning; the battle's monster
  rewards are still paid out.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.item import Item, RewardItem
from lifequest.modules.loot.dungeons import DungeonCatalog
from lifequest.modules.loot.item_generator import ItemGenerator
from lifequest.modules.rng.random_source import RandomSource

logger = get_logger(__name__)


@dataclass(frozen=True)
class BattleRewards:
    experience: int = 0
    gold: int = 0
    items: Tuple[RewardItem, ...] = ()
    equipment: Tuple[Item, ...] = ()
    first_clear: bool = False
    first_clear_bonus_gold: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "experience": self.experience,
            "gold": self.gold,
            "items": [{"item_id": i.item_id, "quantity": i.quantity} for i in self.items],
            "equipment": [item.to_dict() for item in self.equipment],
            "first_clear": self.first_clear,
            "first_clear_bonus_gold": self.first_clear_bonus_gold,
        }


class RewardCalculator:
    """
    Computes rewards for cleared dungeons.

    Configuration Keys
    ------------------
    - rewards.repeat_clear_quantity_multiplier (default: 0.1)
    - rewards.equipment_drop_chance (percent, default: 15)
    """

    def __init__(
        self,
        catalog: DungeonCatalog,
        item_generator: ItemGenerator,
        rng: RandomSource,
        config_manager: ConfigManager,
    ) -> None:
        self._catalog = catalog
        self._items = item_generator
        self._rng = rng
        self._repeat_multiplier = float(
            config_manager.get("rewards.repeat_clear_quantity_multiplier", 0.1)
        )
        self._equipment_chance = float(config_manager.get("rewards.equipment_drop_chance", 15))

        logger.info(
            "RewardCalculator initialized",
            extra={
                "repeat_clear_quantity_multiplier": self._repeat_multiplier,
                "equipment_drop_chance": self._equipment_chance,
            },
        )

    def calculate_dungeon_rewards(self, dungeon_id: str, is_first_clear: bool) -> List[RewardItem]:
        dungeon = self._catalog.get(dungeon_id)
        if dungeon is None:
            logger.warning("Unknown dungeon, no drops", extra={"dungeon_id": dungeon_id})
            return []

        drop_scale = self._catalog.scaling_for(dungeon.difficulty).drop_rate
        rewards: List[RewardItem] = []
        for entry in dungeon.drops:
            if entry.first_clear_only and not is_first_clear:
                continue
            if not self._rng.chance(min(100.0, entry.drop_rate * drop_scale)):
                continue

            quantity = self._rng.randint(entry.min_quantity, entry.max_quantity)
            if not is_first_clear:
                quantity = max(1, math.ceil(quantity * self._repeat_multiplier))
            rewards.append(RewardItem(item_id=entry.item_id, quantity=quantity))

        logger.debug(
            "Dungeon drops rolled",
            extra={
                "dungeon_id": dungeon_id,
                "first_clear": is_first_clear,
                "drops": [r.item_id for r in rewards],
            },
        )
        return rewards

    def calculate_battle_rewards(
        self,
        dungeon_id: Optional[str],
        monster_rewards: Iterable[Tuple[int, int]],
        is_first_clear: bool,
        player_level: int,
    ) -> BattleRewards:
        """
        Args:
            dungeon_id: Cleared dungeon, or None for an ad hoc battle
            monster_rewards: `(experience, gold)` of every defeated monster
            is_first_clear: First completion of this dungeon by the player
            player_level: Scales generated equipment
        """
        experience = 0
        gold = 0
        for exp_reward, gold_reward in monster_rewards:
            experience += exp_reward
            gold += gold_reward

        items: List[RewardItem] = []
        bonus_gold = 0
        if dungeon_id is not None:
            dungeon = self._catalog.get(dungeon_id)
            items = self.calculate_dungeon_rewards(dungeon_id, is_first_clear)
            if dungeon is not None:
                experience += dungeon.clear_experience
                gold_scale = self._catalog.scaling_for(dungeon.difficulty).gold
                gold += int(self._rng.randint(*dungeon.clear_gold) * gold_scale)
                if is_first_clear:
                    bonus_gold = dungeon.first_clear_bonus_gold
                    gold += bonus_gold

        equipment: Tuple[Item, ...] = ()
        if self._rng.chance(self._equipment_chance):
            equipment = (self._items.generate_random_item(player_level),)

        rewards = BattleRewards(
            experience=experience,
            gold=gold,
            items=tuple(items),
            equipment=equipment,
            first_clear=is_first_clear,
            first_clear_bonus_gold=bonus_gold,
        )
        logger.info(
            "Battle rewards calculated",
            extra={
                "dungeon_id": dungeon_id,
                "experience": experience,
                "gold": gold,
                "items": len(items),
                "equipment": len(equipment),
            },
        )
        return rewards
