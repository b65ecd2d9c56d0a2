"""RNG & Tables: the seedable random source and weighted lookup tables."""

from lifequest.modules.rng.random_source import RandomSource
from lifequest.modules.rng.tables import WeightedEntry, WeightedTable

__all__ = ["RandomSource", "WeightedEntry", "WeightedTable"]
