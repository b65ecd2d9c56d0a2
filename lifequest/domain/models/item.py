"""
Item value records produced by the loot generator.

Items are immutable once generated; ownership moves to the player's inventory
(a host concern) on pickup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from lifequest.domain.models.base import validate_non_negative, validate_not_empty


class ItemRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"


@dataclass(frozen=True)
class ItemBonus:
    stat: str
    value: int

    def __post_init__(self) -> None:
        validate_not_empty(self.stat, "stat")
        validate_non_negative(self.value, "value")


@dataclass(frozen=True)
class Item:
    id: str
    name: str
    type: ItemType
    rarity: ItemRarity
    level: int
    bonuses: Tuple[ItemBonus, ...] = field(default_factory=tuple)
    special_effect: Optional[str] = None

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_not_empty(self.name, "name")
        object.__setattr__(self, "type", ItemType(self.type))
        object.__setattr__(self, "rarity", ItemRarity(self.rarity))
        object.__setattr__(self, "bonuses", tuple(self.bonuses))

    @property
    def total_bonus(self) -> int:
        return sum(bonus.value for bonus in self.bonuses)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "rarity": self.rarity.value,
            "level": self.level,
            "bonuses": [{"stat": b.stat, "value": b.value} for b in self.bonuses],
            "special_effect": self.special_effect,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            id=data["id"],
            name=data["name"],
            type=ItemType(data["type"]),
            rarity=ItemRarity(data["rarity"]),
            level=int(data.get("level", 1)),
            bonuses=tuple(
                ItemBonus(stat=b["stat"], value=int(b["value"]))
                for b in data.get("bonuses", [])
            ),
            special_effect=data.get("special_effect"),
        )


@dataclass(frozen=True)
class RewardItem:
    """One `{item_id, quantity}` line of a battle reward."""

    item_id: str
    quantity: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", max(1, int(self.quantity)))
