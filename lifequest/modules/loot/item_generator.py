"""
Item Generator
==============

Purpose
-------
Produce concrete equipment from a rarity roll and an item archetype.

Domain
------
- Rarity determination (one roll against the rarity table)
- Bonus rolls: count from the rarity range, stats without replacement
  from the item type's pool, values scaled by player level
- Names, description lines and sale value
- Folding equipped item bonuses into a combat stat snapshot

Design Decisions
----------------
- All randomness comes from the injected RandomSource.
- Generated items are immutable `Item` records; ids come from an
  injectable factory so tests can pin them.
- Mythic items receive one flavor special effect. It is descriptive only.
- Bonus stats are stored in snake_case (`critical_chance`), the same names
  CombatantStats uses.

Dependencies
------------
- ConfigManager: `items.*` tables
- RandomSource: every roll
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.combatant import MODIFIABLE_STATS, CombatantStats
from lifequest.domain.models.item import Item, ItemBonus, ItemRarity, ItemType
from lifequest.domain.models.status import normalize_stat_name
from lifequest.modules.loot.rarity import RarityTable
from lifequest.modules.rng.random_source import RandomSource

logger = get_logger(__name__)


DEFAULT_TYPE_STATS: Dict[str, List[str]] = {
    "weapon": ["attack", "critical_chance", "critical_damage", "attack_speed"],
    "armor": ["defense", "max_health", "evasion"],
    "accessory": ["attack_speed", "critical_chance", "evasion", "penetration", "life_steal"],
}

DEFAULT_PERCENT_STATS = ("attack", "defense", "max_health", "attack_speed")


def _new_item_id() -> str:
    return f"item-{uuid.uuid4().hex[:12]}"


# ============================================================================
# ItemGenerator
# ============================================================================


class ItemGenerator:
    """
    Generates equipment and derives its text and value.

    Public Methods
    --------------
    - determine_rarity() -> Roll a rarity tier
    - generate_item(type, rarity, level) -> Item with rolled bonuses
    - generate_random_item(level) -> Random rarity and random type
    - describe(item) -> Display lines ("+12% Attack", special effect)
    - item_value(item) -> Sale price in gold

    Configuration Keys
    ------------------
    - items.rarities, items.type_stats, items.level_bonus_divisor
    - items.name_prefixes, items.base_names, items.stat_labels
    - items.mythic_special_effects
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        rng: RandomSource,
        id_factory: Optional[Callable[[], str]] = None,
        rarity_table: Optional[RarityTable] = None,
    ) -> None:
        self._config = config_manager
        self._rng = rng
        self._id_factory = id_factory or _new_item_id
        self._rarities = rarity_table or RarityTable.from_config(config_manager)

        self._level_divisor = max(1, int(config_manager.get("items.level_bonus_divisor", 10)))
        self._type_stats: Dict[str, List[str]] = {
            **DEFAULT_TYPE_STATS,
            **{
                key: [normalize_stat_name(s) or s for s in stats]
                for key, stats in config_manager.section("items.type_stats").items()
            },
        }
        self._prefixes: Dict[str, List[str]] = config_manager.section("items.name_prefixes")
        self._base_names: Dict[str, List[str]] = config_manager.section("items.base_names")
        self._stat_labels: Dict[str, str] = config_manager.section("items.stat_labels")
        self._special_effects: List[str] = list(
            config_manager.get("items.mythic_special_effects", [])
        )
        self._percent_stats: Tuple[str, ...] = tuple(
            normalize_stat_name(s) or s
            for s in config_manager.get("items.percent_scaled_stats", list(DEFAULT_PERCENT_STATS))
        )

        logger.info(
            "ItemGenerator initialized",
            extra={
                "level_bonus_divisor": self._level_divisor,
                "item_types": sorted(self._type_stats),
                "special_effects": len(self._special_effects),
            },
        )

    @property
    def rarities(self) -> RarityTable:
        return self._rarities

    # ========================================================================
    # PUBLIC API - Generation
    # ========================================================================

    def determine_rarity(self) -> ItemRarity:
        return self._rarities.determine_rarity(self._rng)

    def generate_item(self, item_type: ItemType, rarity: ItemRarity, player_level: int) -> Item:
        """
        Build one item of `item_type` and `rarity`.

        The bonus count is uniform in the rarity's [min_bonuses, max_bonuses];
        each bonus picks an unused stat from the type's pool and a value in
        [min_bonus_value + level // 10, max_bonus_value + level // 10].
        """
        item_type = ItemType(item_type)
        rarity = ItemRarity(rarity)
        tier = self._rarities[rarity]
        level = max(1, int(player_level))

        count = self._rng.randint(tier.min_bonuses, tier.max_bonuses)
        pool = self._type_stats.get(item_type.value, [])
        stats = self._rng.sample(pool, count)

        level_bonus = level // self._level_divisor
        bonuses = tuple(
            ItemBonus(
                stat=stat,
                value=self._rng.randint(
                    tier.min_bonus_value + level_bonus,
                    tier.max_bonus_value + level_bonus,
                ),
            )
            for stat in stats
        )

        special_effect = None
        if rarity is ItemRarity.MYTHIC and self._special_effects:
            special_effect = self._rng.choice(self._special_effects)

        item = Item(
            id=self._id_factory(),
            name=self._roll_name(item_type, rarity),
            type=item_type,
            rarity=rarity,
            level=level,
            bonuses=bonuses,
            special_effect=special_effect,
        )

        logger.debug(
            "Item generated",
            extra={
                "item_id": item.id,
                "item_type": item_type.value,
                "rarity": rarity.value,
                "level": level,
                "bonuses": [b.stat for b in bonuses],
            },
        )
        return item

    def generate_random_item(self, player_level: int) -> Item:
        rarity = self.determine_rarity()
        item_type = self._rng.choice(list(ItemType))
        return self.generate_item(item_type, rarity, player_level)

    # ========================================================================
    # PUBLIC API - Presentation
    # ========================================================================

    def describe(self, item: Item) -> List[str]:
        lines = [
            f"+{bonus.value}% {self._stat_labels.get(bonus.stat, bonus.stat)}"
            for bonus in item.bonuses
        ]
        if item.special_effect:
            lines.append("")
            lines.append(f"Special: {item.special_effect}")
        return lines

    def item_value(self, item: Item) -> int:
        """Sale price: rarity base value scaled by the summed bonus percentages."""
        base = self._rarities[item.rarity].base_value
        return int(base * (1 + item.total_bonus / 100))

    def equip(self, stats: CombatantStats, items: Iterable[Item]) -> CombatantStats:
        """`stats` with the bonuses of every equipped item folded in."""
        return apply_item_bonuses(stats, items, self._percent_stats)

    def _roll_name(self, item_type: ItemType, rarity: ItemRarity) -> str:
        base_names = self._base_names.get(item_type.value) or [item_type.value.title()]
        prefixes = self._prefixes.get(rarity.value)
        base = self._rng.choice(base_names)
        if not prefixes:
            return base
        return f"{self._rng.choice(prefixes)} {base}"


# ============================================================================
# Equipment application
# ============================================================================


def apply_item_bonuses(
    stats: CombatantStats,
    items: Iterable[Item],
    percent_stats: Sequence[str] = DEFAULT_PERCENT_STATS,
) -> CombatantStats:
    """
    New snapshot with every item bonus folded in.

    Bonuses on `percent_stats` scale the base value (+10 means x1.10);
    the rest add percentage points. A snapshot at full health stays full.
    """
    totals: Dict[str, int] = defaultdict(int)
    for item in items:
        for bonus in item.bonuses:
            stat = normalize_stat_name(bonus.stat) or bonus.stat
            if stat in MODIFIABLE_STATS:
                totals[stat] += bonus.value
            else:
                logger.warning("Ignoring unknown item stat", extra={"stat": bonus.stat, "item_id": item.id})

    was_full = stats.current_health >= stats.max_health
    result = stats
    for stat, total in totals.items():
        if stat in percent_stats:
            result = result.scaled(stat, 1 + total / 100)
        else:
            result = result.plus(stat, total)

    if was_full:
        result = result.fresh()
    return result
