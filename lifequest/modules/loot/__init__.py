"""Loot & item generation: rarity rolls, equipment, drop tables and dungeon progress."""

from .dungeons import DungeonCatalog
from .item_generator import ItemGenerator, apply_item_bonuses
from .progress_service import ClearRecord, DungeonProgressService
from .rarity import DEFAULT_RARITIES, RARITY_ORDER, RarityConfig, RarityTable
from .rewards import BattleRewards, RewardCalculator

__all__ = [
    "DungeonCatalog",
    "ItemGenerator",
    "apply_item_bonuses",
    "ClearRecord",
    "DungeonProgressService",
    "DEFAULT_RARITIES",
    "RARITY_ORDER",
    "RarityConfig",
    "RarityTable",
    "BattleRewards",
    "RewardCalculator",
]
