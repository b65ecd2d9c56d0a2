"""
Rarity Table
============

Purpose
-------
Six-tier item rarity configuration and the single-roll rarity selection
used by the item generator.

Design Decisions
----------------
- Tiers are kept in ascending order (common -> mythic); selection walks
  them in that order against one roll.
- Drop rates must sum to 100 within DROP_RATE_TOLERANCE, checked once at
  construction. A broken table is a deployment problem, so it raises
  ConfigValidationError instead of being clamped.
- Missing per-tier fields fall back to the built-in defaults, so a host
  may override a single value without restating the whole table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

from lifequest.core.config.errors import ConfigValidationError
from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.item import ItemRarity
from lifequest.modules.rng.random_source import RandomSource
from lifequest.modules.rng.tables import WeightedEntry, WeightedTable

logger = get_logger(__name__)

DROP_RATE_TOLERANCE = 0.01

RARITY_ORDER = (
    ItemRarity.COMMON,
    ItemRarity.UNCOMMON,
    ItemRarity.RARE,
    ItemRarity.EPIC,
    ItemRarity.LEGENDARY,
    ItemRarity.MYTHIC,
)


@dataclass(frozen=True)
class RarityConfig:
    rarity: ItemRarity
    color: str
    min_bonuses: int
    max_bonuses: int
    min_bonus_value: int
    max_bonus_value: int
    drop_rate: float
    base_value: int

    def __post_init__(self) -> None:
        low, high = sorted((max(0, int(self.min_bonuses)), max(0, int(self.max_bonuses))))
        object.__setattr__(self, "min_bonuses", low)
        object.__setattr__(self, "max_bonuses", high)
        low, high = sorted(
            (max(0, int(self.min_bonus_value)), max(0, int(self.max_bonus_value)))
        )
        object.__setattr__(self, "min_bonus_value", low)
        object.__setattr__(self, "max_bonus_value", high)
        object.__setattr__(self, "drop_rate", max(0.0, float(self.drop_rate)))
        object.__setattr__(self, "base_value", max(0, int(self.base_value)))


DEFAULT_RARITIES: Dict[ItemRarity, RarityConfig] = {
    ItemRarity.COMMON: RarityConfig(ItemRarity.COMMON, "#9CA3AF", 1, 1, 5, 10, 60, 10),
    ItemRarity.UNCOMMON: RarityConfig(ItemRarity.UNCOMMON, "#22C55E", 2, 2, 10, 15, 25, 25),
    ItemRarity.RARE: RarityConfig(ItemRarity.RARE, "#3B82F6", 2, 2, 15, 25, 10, 60),
    ItemRarity.EPIC: RarityConfig(ItemRarity.EPIC, "#A855F7", 3, 3, 25, 35, 4, 150),
    ItemRarity.LEGENDARY: RarityConfig(ItemRarity.LEGENDARY, "#F97316", 3, 3, 35, 50, 0.9, 400),
    ItemRarity.MYTHIC: RarityConfig(ItemRarity.MYTHIC, "#EF4444", 4, 4, 50, 75, 0.1, 1000),
}


class RarityTable:
    """
    Validated rarity tiers.

    Raises:
        ConfigValidationError: Drop rates do not sum to 100
    """

    def __init__(self, tiers: Mapping[ItemRarity, RarityConfig]) -> None:
        self._tiers: Dict[ItemRarity, RarityConfig] = {
            rarity: tiers.get(rarity, DEFAULT_RARITIES[rarity]) for rarity in RARITY_ORDER
        }
        total = sum(tier.drop_rate for tier in self._tiers.values())
        if abs(total - 100.0) > DROP_RATE_TOLERANCE:
            raise ConfigValidationError(
                f"Rarity drop rates must sum to 100, got {total:g}"
            )
        self._weights: WeightedTable[ItemRarity] = WeightedTable(
            WeightedEntry(rarity, tier.drop_rate) for rarity, tier in self._tiers.items()
        )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "RarityTable":
        tiers: Dict[ItemRarity, RarityConfig] = {}
        for rarity in RARITY_ORDER:
            row = raw.get(rarity.value)
            default = DEFAULT_RARITIES[rarity]
            if row is None:
                continue
            if not isinstance(row, Mapping):
                raise ConfigValidationError(f"Rarity '{rarity.value}' must be a mapping")
            tiers[rarity] = RarityConfig(
                rarity=rarity,
                color=str(row.get("color", default.color)),
                min_bonuses=row.get("min_bonuses", default.min_bonuses),
                max_bonuses=row.get("max_bonuses", default.max_bonuses),
                min_bonus_value=row.get("min_bonus_value", default.min_bonus_value),
                max_bonus_value=row.get("max_bonus_value", default.max_bonus_value),
                drop_rate=row.get("drop_rate", default.drop_rate),
                base_value=row.get("base_value", default.base_value),
            )
        unknown = set(raw) - {r.value for r in RARITY_ORDER}
        if unknown:
            logger.warning("Ignoring unknown rarity tiers", extra={"tiers": sorted(unknown)})
        return cls(tiers)

    @classmethod
    def from_config(cls, config_manager: ConfigManager) -> "RarityTable":
        return cls.from_mapping(config_manager.section("items.rarities"))

    def __getitem__(self, rarity: ItemRarity) -> RarityConfig:
        return self._tiers[ItemRarity(rarity)]

    def __iter__(self) -> Iterator[RarityConfig]:
        return iter(self._tiers.values())

    @property
    def total_drop_rate(self) -> float:
        return sum(tier.drop_rate for tier in self._tiers.values())

    def determine_rarity(self, rng: RandomSource) -> ItemRarity:
        """One roll against the cumulative drop-rate table."""
        picked: Optional[ItemRarity] = self._weights.pick(rng, normalize=True)
        return picked or ItemRarity.COMMON
