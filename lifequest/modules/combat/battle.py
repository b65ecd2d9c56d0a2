"""
Battle aggregate
================

One battle from first tick to Victory or Defeat: the player, the current
stage's monsters, the remaining stages and the append-only message log.

Phases: NOT_STARTED -> IN_PROGRESS -> VICTORY | DEFEAT. Both exits are
terminal. Significant transitions are recorded as domain events:
`battle.started`, `battle.stage_cleared`, `battle.victory`, `battle.defeat`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from lifequest.domain.models.base import AggregateRoot
from lifequest.domain.models.combatant import Combatant
from lifequest.domain.models.dungeon import MonsterSpec
from lifequest.modules.combat.combo import ComboDetector
from lifequest.modules.loot.rewards import BattleRewards


class BattlePhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    VICTORY = "victory"
    DEFEAT = "defeat"

    @property
    def is_terminal(self) -> bool:
        return self in (BattlePhase.VICTORY, BattlePhase.DEFEAT)


class MessageType(str, Enum):
    DAMAGE = "damage"
    CRITICAL = "critical"
    HEAL = "heal"
    STATUS = "status"
    MISS = "miss"
    START = "start"
    END = "end"
    NORMAL = "normal"


@dataclass(frozen=True)
class BattleMessage:
    text: str
    type: MessageType
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class BattleResult:
    battle_id: str
    outcome: BattlePhase
    surviving_health_ratio: float
    rounds: int
    stages_cleared: int
    messages: Tuple[BattleMessage, ...]
    rewards: Optional[BattleRewards] = None

    @property
    def is_victory(self) -> bool:
        return self.outcome is BattlePhase.VICTORY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "battle_id": self.battle_id,
            "outcome": self.outcome.value,
            "surviving_health_ratio": self.surviving_health_ratio,
            "rounds": self.rounds,
            "stages_cleared": self.stages_cleared,
            "messages": [m.to_dict() for m in self.messages],
            "rewards": self.rewards.to_dict() if self.rewards else None,
        }


class Battle(AggregateRoot):
    """Mutable state of one battle; mutated only by the orchestrator."""

    def __init__(
        self,
        battle_id: str,
        player: Combatant,
        stages: Sequence[Sequence[MonsterSpec]],
        combo_detector: ComboDetector,
        dungeon_id: Optional[str] = None,
        player_level: int = 1,
        is_first_clear: bool = False,
        max_rounds: int = 100,
    ) -> None:
        super().__init__(battle_id)
        self.player = player
        self.stages: Tuple[Tuple[MonsterSpec, ...], ...] = tuple(tuple(s) for s in stages)
        self.combo_detector = combo_detector
        self.dungeon_id = dungeon_id
        self.player_level = max(1, int(player_level))
        self.is_first_clear = is_first_clear
        self.max_rounds = max(1, int(max_rounds))

        self.phase = BattlePhase.NOT_STARTED
        self.round = 0
        self.stage_index = 0
        self.monsters: List[Combatant] = []
        self.defeated: List[Combatant] = []
        self.messages: List[BattleMessage] = []
        self.awaiting_next_stage = False
        self.rewards: Optional[BattleRewards] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_over(self) -> bool:
        return self.phase.is_terminal

    @property
    def total_stages(self) -> int:
        return len(self.stages)

    @property
    def is_final_stage(self) -> bool:
        return self.stage_index >= self.total_stages - 1

    @property
    def stages_cleared(self) -> int:
        if self.phase is BattlePhase.VICTORY:
            return self.total_stages
        return self.stage_index + (1 if self.awaiting_next_stage else 0)

    def alive_monsters(self) -> List[Combatant]:
        return [m for m in self.monsters if m.is_alive]

    @property
    def stage_cleared(self) -> bool:
        return bool(self.monsters) and not self.alive_monsters()

    def combatants(self) -> List[Combatant]:
        return [self.player, *self.monsters]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def log(
        self,
        text: str,
        message_type: MessageType = MessageType.NORMAL,
        timestamp: Optional[datetime] = None,
        **metadata: Any,
    ) -> BattleMessage:
        message = BattleMessage(
            text=text,
            type=message_type,
            timestamp=timestamp or datetime.now(timezone.utc),
            metadata=metadata,
        )
        self.messages.append(message)
        return message

    def mark_started(self) -> None:
        self.phase = BattlePhase.IN_PROGRESS
        self.add_domain_event(
            "battle.started",
            {"battle_id": self.id, "dungeon_id": self.dungeon_id, "stages": self.total_stages},
        )

    def mark_stage_cleared(self, delay_ms: int) -> None:
        self.awaiting_next_stage = True
        self.add_domain_event(
            "battle.stage_cleared",
            {"battle_id": self.id, "stage": self.stage_index + 1, "delay_ms": delay_ms},
        )

    def mark_victory(self, rewards: Optional[BattleRewards]) -> None:
        self.phase = BattlePhase.VICTORY
        self.rewards = rewards
        self.add_domain_event(
            "battle.victory",
            {
                "battle_id": self.id,
                "dungeon_id": self.dungeon_id,
                "rounds": self.round,
                "health_ratio": self.player.stats.health_ratio,
            },
        )

    def mark_defeat(self, reason: str) -> None:
        self.phase = BattlePhase.DEFEAT
        self.add_domain_event(
            "battle.defeat",
            {"battle_id": self.id, "dungeon_id": self.dungeon_id, "rounds": self.round, "reason": reason},
        )

    def result(self) -> BattleResult:
        return BattleResult(
            battle_id=self.id,
            outcome=self.phase,
            surviving_health_ratio=self.player.stats.health_ratio,
            rounds=self.round,
            stages_cleared=self.stages_cleared,
            messages=tuple(self.messages),
            rewards=self.rewards,
        )
