"""
Weighted lookup tables.

A table is an ordered list of `(key, weight)` entries. Selection always
accumulates weights in order and compares them to a single roll; see
`RandomSource.weighted_pick` for the two selection modes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Iterable, Mapping, Optional, Tuple, TypeVar

if TYPE_CHECKING:
    from lifequest.modules.rng.random_source import RandomSource

K = TypeVar("K")


@dataclass(frozen=True)
class WeightedEntry(Generic[K]):
    key: K
    weight: float


class WeightedTable(Generic[K]):
    """Immutable ordered weight table."""

    def __init__(self, entries: Iterable[WeightedEntry[K]]) -> None:
        self._entries: Tuple[WeightedEntry[K], ...] = tuple(entries)

    @classmethod
    def from_mapping(cls, weights: Mapping[K, float]) -> "WeightedTable[K]":
        return cls(WeightedEntry(key, float(weight)) for key, weight in weights.items())

    @property
    def entries(self) -> Tuple[WeightedEntry[K], ...]:
        return self._entries

    @property
    def total_weight(self) -> float:
        return sum(e.weight for e in self._entries if e.weight > 0)

    def pick(self, rng: "RandomSource", normalize: bool = True) -> Optional[K]:
        return rng.weighted_pick(self._entries, normalize=normalize)

    def __len__(self) -> int:
        return len(self._entries)
