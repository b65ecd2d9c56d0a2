"""
RandomSource - seedable randomness for every engine roll
========================================================

Purpose
-------
Single entry point for randomness. Every probability test in the engine
draws from one RandomSource instance owned by the host, so a fixed seed
reproduces a whole battle.

Design Decisions
----------------
- `roll()` is uniform in [0, 100); chances are percentages.
- `chance(p)` is a Bernoulli trial: `roll() < p`, so 0 never fires and
  100 always fires.
- `weighted_pick` accumulates weights in table order and compares them to a
  single roll. Entries with weight <= 0 are never picked.
    * normalize=True: the roll is scaled to the table's total weight, so
      some entry is always picked (rarity selection).
    * normalize=False: the roll is compared to raw weights; when it lands
      beyond the cumulative weight the result is None (drop gating).
- Wraps `random.Random`; not suitable for anything security-sensitive.
"""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence, TypeVar

from lifequest.core.logging.logger import get_logger
from lifequest.modules.rng.tables import WeightedEntry

logger = get_logger(__name__)

T = TypeVar("T")


class RandomSource:
    """
    Injectable random number source.

    Usage
    -----
    >>> rng = RandomSource(seed=42)
    >>> 0 <= rng.roll() < 100
    True
    >>> rng.chance(100)
    True
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        generator: Optional[random.Random] = None,
    ) -> None:
        self._seed = seed
        self._random = generator or random.Random(seed)
        logger.debug("RandomSource initialized", extra={"seed": seed})

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    # ========================================================================
    # Primitive draws
    # ========================================================================

    def roll(self) -> float:
        """Uniform value in [0, 100)."""
        return self._random.random() * 100

    def chance(self, percent: float) -> bool:
        """Independent Bernoulli trial at `percent` (0-100)."""
        if percent <= 0:
            return False
        return self.roll() < percent

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high]; bounds are swapped if reversed."""
        if high < low:
            low, high = high, low
        return self._random.randint(int(low), int(high))

    def uniform(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def choice(self, items: Sequence[T]) -> T:
        return self._random.choice(items)

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        """Up to `k` distinct elements without replacement."""
        k = max(0, min(k, len(items)))
        return self._random.sample(list(items), k)

    # ========================================================================
    # Weighted tables
    # ========================================================================

    def weighted_pick(
        self,
        entries: Iterable[WeightedEntry[T]],
        normalize: bool = True,
    ) -> Optional[T]:
        """Pick a key by cumulative weight against one roll."""
        candidates = [e for e in entries if e.weight > 0]
        if not candidates:
            return None

        roll = self.roll()
        if normalize:
            total = sum(e.weight for e in candidates)
            roll = roll / 100 * total

        accumulated = 0.0
        for entry in candidates:
            accumulated += entry.weight
            if roll <= accumulated:
                return entry.key

        if normalize:
            # Floating point residue at the top of the range.
            return candidates[-1].key
        return None
