"""
Combo Detector
==============

Purpose
-------
Recognize configured skill sequences in the player's recent casts.

Domain
------
- Bounded rolling log of SkillCast records (oldest dropped first)
- Match: casts within the combo's time window of "now", last N compared to
  the N-skill sequence in exact order
- A match with `replace_with` substitutes the player's next skill, and its
  bonus (if any) empowers that replacement. A match with only a bonus
  empowers the skill just cast.

Design Decisions
----------------
- When several combos match the same tail, the longest sequence wins, then
  the higher `priority`, then the alphabetically first id.
- A match never clears the log. Re-triggering is limited by the time window
  and by the sequence needing to be cast again in full.
- Timestamps are integer milliseconds supplied by the caller.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.domain.models.ability import AbilityEffect, EffectKind, EffectTarget
from lifequest.modules.ability.engine import DEFAULT_HEAL_RATIO
from lifequest.modules.combat.skills import PlayerSkill

logger = get_logger(__name__)

DEFAULT_MAX_HISTORY = 32


# ============================================================================
# Data Models
# ============================================================================


@dataclass(frozen=True)
class SkillCast:
    skill_id: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"skill_id": self.skill_id, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SkillCast":
        return cls(skill_id=str(data["skill_id"]), timestamp=int(data["timestamp"]))


class ComboBonusKind(str, Enum):
    DAMAGE = "damage"
    HEAL = "heal"
    STUN = "stun"
    DOT = "dot"
    BUFF = "buff"


@dataclass(frozen=True)
class ComboBonus:
    kind: ComboBonusKind
    value: float = 0
    duration: Optional[int] = None
    stat: Optional[str] = None
    multiplier: Optional[float] = None


@dataclass(frozen=True)
class SkillCombo:
    id: str
    name: str
    sequence: Tuple[str, ...]
    time_window_ms: int
    bonus: Optional[ComboBonus] = None
    replace_with: Optional[str] = None
    priority: int = 0


def load_combos(config_manager: ConfigManager) -> List[SkillCombo]:
    combos: List[SkillCombo] = []
    for combo_id, row in config_manager.section("skills.combos").items():
        try:
            bonus_row = row.get("bonus")
            bonus = None
            if bonus_row:
                bonus = ComboBonus(
                    kind=ComboBonusKind(bonus_row["kind"]),
                    value=float(bonus_row.get("value", 0)),
                    duration=bonus_row.get("duration"),
                    stat=bonus_row.get("stat"),
                    multiplier=bonus_row.get("multiplier"),
                )
            sequence = tuple(str(s) for s in row["sequence"])
            if not sequence:
                raise ValueError("empty sequence")
            combos.append(
                SkillCombo(
                    id=combo_id,
                    name=str(row.get("name", combo_id)),
                    sequence=sequence,
                    time_window_ms=max(0, int(row["time_window_ms"])),
                    bonus=bonus,
                    replace_with=row.get("replace_with"),
                    priority=int(row.get("priority", 0)),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(
                "Skipping malformed combo",
                extra={"combo_id": combo_id, "error": str(exc)},
            )
    return combos


def _scaled_heal(effect: AbilityEffect, scale: float) -> AbilityEffect:
    if effect.value is not None:
        return replace(effect, value=int(effect.value * scale))
    ratio = effect.multiplier if effect.multiplier is not None else DEFAULT_HEAL_RATIO
    return replace(effect, multiplier=ratio * scale)


def apply_combo_bonus(skill: PlayerSkill, bonus: Optional[ComboBonus]) -> PlayerSkill:
    """The skill with `bonus` merged in."""
    if bonus is None:
        return skill

    if bonus.kind is ComboBonusKind.DAMAGE:
        return replace(skill, power=skill.power * (1 + bonus.value / 100))

    if bonus.kind is ComboBonusKind.HEAL:
        if not any(e.kind is EffectKind.HEAL for e in skill.effects):
            extra = AbilityEffect(
                kind=EffectKind.HEAL, target=EffectTarget.SELF, multiplier=bonus.value / 100
            )
            return replace(skill, effects=skill.effects + (extra,))
        scale = 1 + bonus.value / 100
        return replace(
            skill,
            effects=tuple(
                _scaled_heal(e, scale) if e.kind is EffectKind.HEAL else e for e in skill.effects
            ),
        )

    if bonus.kind is ComboBonusKind.STUN:
        extra = AbilityEffect(kind=EffectKind.STUN, duration=int(bonus.duration or bonus.value or 1))
    elif bonus.kind is ComboBonusKind.DOT:
        extra = AbilityEffect(
            kind=EffectKind.BURN, value=int(bonus.value), duration=int(bonus.duration or 1)
        )
    else:
        extra = AbilityEffect(
            kind=EffectKind.BUFF,
            target=EffectTarget.SELF,
            stat=bonus.stat or "attack",
            multiplier=float(bonus.multiplier or 1 + bonus.value / 100),
            duration=int(bonus.duration or 1),
        )
    return replace(skill, effects=skill.effects + (extra,))


# ============================================================================
# ComboDetector
# ============================================================================


class ComboDetector:
    """
    Rolling cast log plus combo matching for one player session.

    Usage
    -----
    >>> detector = ComboDetector(load_combos(config))
    >>> detector.record_cast("fireball", 1_000)
    >>> detector.record_cast("fireball", 2_000)
    >>> detector.record_cast("fireball", 3_000).id
    'inferno'
    """

    def __init__(self, combos: Iterable[SkillCombo], max_history: int = DEFAULT_MAX_HISTORY) -> None:
        self._combos: List[SkillCombo] = sorted(
            combos, key=lambda c: (-len(c.sequence), -c.priority, c.id)
        )
        self._history: Deque[SkillCast] = deque(maxlen=max(1, int(max_history)))
        self._pending: Optional[SkillCombo] = None

    @classmethod
    def from_config(cls, config_manager: ConfigManager) -> "ComboDetector":
        combos = load_combos(config_manager)
        max_history = int(config_manager.get("skills.max_history", DEFAULT_MAX_HISTORY))
        logger.debug("ComboDetector created", extra={"combos": len(combos), "max_history": max_history})
        return cls(combos, max_history=max_history)

    @property
    def combos(self) -> Sequence[SkillCombo]:
        return tuple(self._combos)

    @property
    def history(self) -> List[SkillCast]:
        return list(self._history)

    @property
    def pending_replacement(self) -> Optional[str]:
        return self._pending.replace_with if self._pending else None

    def load_history(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Restore a persisted log; malformed records are dropped."""
        self._history.clear()
        for record in records:
            try:
                self._history.append(SkillCast.from_dict(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping malformed skill cast", extra={"record": record, "error": str(exc)})

    def clear(self) -> None:
        self._history.clear()
        self._pending = None

    def take_replacement(self) -> Optional[SkillCombo]:
        """Pop the combo whose replacement skill is owed to the next action."""
        combo, self._pending = self._pending, None
        return combo

    def match(self, now_ms: int) -> Optional[SkillCombo]:
        """Best combo whose sequence ends the in-window cast log at `now_ms`."""
        for combo in self._combos:
            recent = [
                cast.skill_id for cast in self._history
                if now_ms - cast.timestamp <= combo.time_window_ms
            ]
            size = len(combo.sequence)
            if len(recent) >= size and tuple(recent[-size:]) == combo.sequence:
                return combo
        return None

    def record_cast(self, skill_id: str, timestamp_ms: int) -> Optional[SkillCombo]:
        """Append a cast and return the combo it completes, if any."""
        self._history.append(SkillCast(skill_id=skill_id, timestamp=int(timestamp_ms)))
        combo = self.match(int(timestamp_ms))
        if combo is None:
            return None

        if combo.replace_with:
            self._pending = combo
        logger.info(
            "Combo triggered",
            extra={"combo_id": combo.id, "skill_id": skill_id, "replace_with": combo.replace_with},
        )
        return combo
