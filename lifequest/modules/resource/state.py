"""
Persisted resource records.

EnergyState and TicketState are the host-stored records behind the energy
and ticket services. They are immutable; services build new records through
the regeneration clock functions and save them back to the RecordStore.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from lifequest.modules.resource.regen_clock import parse_timestamp


def _int_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _positive_or(value: Any, default: int) -> int:
    parsed = _int_or(value, 0)
    return parsed if parsed > 0 else default


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class EnergyState:
    current: int
    max: int
    last_update: Optional[datetime] = None
    last_daily_bonus_claim: Optional[datetime] = None
    daily_bonus_streak: int = 0

    def __post_init__(self) -> None:
        maximum = max(0, int(self.max))
        object.__setattr__(self, "max", maximum)
        object.__setattr__(self, "current", min(max(0, int(self.current)), maximum))
        object.__setattr__(self, "daily_bonus_streak", max(0, int(self.daily_bonus_streak)))

    @property
    def is_full(self) -> bool:
        return self.current >= self.max

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "max": self.max,
            "last_update": _iso(self.last_update),
            "last_daily_bonus_claim": _iso(self.last_daily_bonus_claim),
            "daily_bonus_streak": self.daily_bonus_streak,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_max: int = 0) -> "EnergyState":
        """
        Parse a stored record; malformed fields clamp or read as never set.

        A missing or non-positive `max` becomes `default_max`, so a damaged
        record never caps the player at zero.
        """
        maximum = _positive_or(data.get("max"), default_max)
        return cls(
            current=_int_or(data.get("current"), maximum),
            max=maximum,
            last_update=parse_timestamp(data.get("last_update")),
            last_daily_bonus_claim=parse_timestamp(data.get("last_daily_bonus_claim")),
            daily_bonus_streak=_int_or(data.get("daily_bonus_streak"), 0),
        )


@dataclass(frozen=True)
class TicketState:
    count: int
    max: int
    last_reset: Optional[datetime] = None

    def __post_init__(self) -> None:
        maximum = max(0, int(self.max))
        object.__setattr__(self, "max", maximum)
        object.__setattr__(self, "count", min(max(0, int(self.count)), maximum))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "max": self.max,
            "last_reset": _iso(self.last_reset),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_max: int = 0) -> "TicketState":
        maximum = _positive_or(data.get("max"), default_max)
        return cls(
            count=_int_or(data.get("count"), 0),
            max=maximum,
            last_reset=parse_timestamp(data.get("last_reset")),
        )
