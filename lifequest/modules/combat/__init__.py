"""Combat: element chart, damage resolution, skills, combos and the battle turn loop."""

from .battle import Battle, BattleMessage, BattlePhase, BattleResult, MessageType
from .combo import (
    ComboBonus,
    ComboBonusKind,
    ComboDetector,
    SkillCast,
    SkillCombo,
    apply_combo_bonus,
    load_combos,
)
from .damage import DamageOutcome, DamageResolver
from .elements import ElementResolver
from .orchestrator import BattleOrchestrator
from .skills import BASIC_ATTACK, BASIC_ATTACK_ID, PlayerSkill, SkillCatalog

__all__ = [
    "Battle",
    "BattleMessage",
    "BattlePhase",
    "BattleResult",
    "MessageType",
    "ComboBonus",
    "ComboBonusKind",
    "ComboDetector",
    "SkillCast",
    "SkillCombo",
    "apply_combo_bonus",
    "load_combos",
    "DamageOutcome",
    "DamageResolver",
    "ElementResolver",
    "BattleOrchestrator",
    "BASIC_ATTACK",
    "BASIC_ATTACK_ID",
    "PlayerSkill",
    "SkillCatalog",
]
