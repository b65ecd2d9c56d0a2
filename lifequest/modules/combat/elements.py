"""
Element Resolver
================

Purpose
-------
Turn an attacker/defender element pair into a damage multiplier.

Domain
------
- The chart maps each element to the one element it beats
  (fire > earth > air > water > fire, light <> dark)
- Beating the defender: `advantage_multiplier` (1.2)
- Being beaten by the defender: `disadvantage_multiplier` (0.8)
- Anything else, including neutral and unknown names: 1.0

Names are compared case-insensitively.

Dependencies
------------
- ConfigManager: `elements.*`
"""

from __future__ import annotations

from typing import Dict, Optional, Set

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CHART: Dict[str, str] = {
    "fire": "earth",
    "water": "fire",
    "earth": "air",
    "air": "water",
    "light": "dark",
    "dark": "light",
}

DEFAULT_ELEMENTS = ("fire", "water", "earth", "air", "light", "dark", "neutral")


def _norm(element: Optional[str]) -> Optional[str]:
    return element.strip().lower() if element else None


class ElementResolver:
    """
    Element chart loaded from the `elements` config section.

    Keys: `advantages` (attacker -> beaten element), `advantage_multiplier`,
    `disadvantage_multiplier`, `valid_elements`.
    """

    def __init__(self, config_manager: ConfigManager) -> None:
        section = config_manager.section("elements")

        chart = section.get("advantages") or DEFAULT_CHART
        self._beats: Dict[str, Optional[str]] = {_norm(str(k)): _norm(v) for k, v in chart.items()}
        self._bonus = float(section.get("advantage_multiplier", 1.2))
        self._penalty = float(section.get("disadvantage_multiplier", 0.8))
        self._known: Set[str] = {_norm(str(e)) for e in section.get("valid_elements", DEFAULT_ELEMENTS)}

        logger.info(
            "ElementResolver initialized",
            extra={"elements": sorted(self._known), "bonus": self._bonus, "penalty": self._penalty},
        )

    def get_multiplier(self, attacker_elem: Optional[str], defender_elem: Optional[str]) -> float:
        """
        >>> resolver.get_multiplier("fire", "earth")
        1.2
        >>> resolver.get_multiplier("fire", "water")
        0.8
        """
        if self.has_advantage(attacker_elem, defender_elem):
            return self._bonus
        if self.has_advantage(defender_elem, attacker_elem):
            return self._penalty
        return 1.0

    def has_advantage(self, attacker_elem: Optional[str], defender_elem: Optional[str]) -> bool:
        attacker, defender = _norm(attacker_elem), _norm(defender_elem)
        return attacker is not None and defender is not None and self._beats.get(attacker) == defender

    def get_advantage_chain(self, element: Optional[str]) -> Dict[str, Optional[str]]:
        """What `element` beats and what beats it."""
        name = _norm(element)
        if name is None:
            return {"beats": None, "beaten_by": None}
        beaten_by = next((a for a, target in self._beats.items() if target == name), None)
        return {"beats": self._beats.get(name), "beaten_by": beaten_by}

    def is_valid_element(self, element: Optional[str]) -> bool:
        return _norm(element) in self._known
