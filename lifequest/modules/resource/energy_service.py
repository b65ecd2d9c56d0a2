"""
EnergyService - Business logic for the energy system
====================================================

Handles:
- Energy regeneration from the stored last-update timestamp
- Offline catch-up capped at a configured number of hours
- Spending energy on dungeon runs (per-difficulty costs)
- Daily bonus claims with streak tracking
- Level-up refill

Every read settles regeneration first through the pure clock functions, so
the stored record is always the single source of truth. The host constructs
one EnergyService and injects it; there is no module-level instance.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from functools import partial
from typing import Dict, Optional

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.modules.resource import regen_clock
from lifequest.modules.resource.state import EnergyState
from lifequest.modules.shared.base_service import BaseService, Clock
from lifequest.modules.shared.exceptions import (
    CooldownActiveError,
    InsufficientResourcesError,
    NotFoundError,
)
from lifequest.modules.shared.repository import RecordRepository, RecordStore

logger = get_logger(__name__)

DEFAULT_DUNGEON_COSTS: Dict[str, int] = {
    "easy": 10,
    "normal": 20,
    "hard": 30,
    "nightmare": 50,
    "special": 40,
    "daily": 15,
    "weekly": 25,
}


@dataclass(frozen=True)
class RegenTimer:
    current: int
    max: int
    next_regen_in: int
    full_in: int
    full_at: Optional[datetime]


@dataclass(frozen=True)
class DailyBonusResult:
    amount: int
    streak: int
    state: EnergyState


class EnergyService(BaseService):
    """
    Energy bookkeeping for one host application.

    Business Logic:
    - Energy regenerates `regen_amount` per `regen_interval_seconds`
    - No accumulation beyond max, even after long offline gaps
    - Daily bonus once per cooldown window; streak grows on consecutive days
    """

    NAMESPACE = "energy"

    def __init__(
        self,
        store: RecordStore,
        config_manager: ConfigManager,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock)
        self._max_energy = int(self.get_config("energy.max_energy", 120))
        self._regen_interval = float(self.get_config("energy.regen_interval_seconds", 600))
        self._regen_amount = int(self.get_config("energy.regen_amount", 1))
        self._max_offline_hours = float(self.get_config("energy.max_offline_hours", 24))
        self._daily_bonus = int(self.get_config("energy.daily_bonus", 30))
        self._bonus_cooldown_hours = float(
            self.get_config("energy.daily_bonus_cooldown_hours", 24)
        )
        self._dungeon_costs: Dict[str, int] = {
            **DEFAULT_DUNGEON_COSTS,
            **{k: int(v) for k, v in self._config.section("energy.dungeon_costs").items()},
        }
        self._repo = RecordRepository(
            store,
            self.NAMESPACE,
            EnergyState,
            parser=partial(EnergyState.from_dict, default_max=self._max_energy),
        )

        self.log.info(
            "EnergyService initialized",
            extra={
                "max_energy": self._max_energy,
                "regen_interval_seconds": self._regen_interval,
                "regen_amount": self._regen_amount,
                "max_offline_hours": self._max_offline_hours,
                "daily_bonus": self._daily_bonus,
            },
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _fresh_state(self) -> EnergyState:
        return EnergyState(
            current=self._max_energy,
            max=self._max_energy,
            last_update=self.now(),
        )

    def _settle(self, state: EnergyState, now: datetime) -> EnergyState:
        current, last_update = regen_clock.settle_regen(
            state.current,
            state.max,
            state.last_update,
            self._regen_amount,
            self._regen_interval,
            self._max_offline_hours,
            now,
        )
        return replace(state, current=current, last_update=last_update)

    def _load(self, player_id: str) -> EnergyState:
        state = self._repo.find(player_id)
        if state is None:
            state = self._fresh_state()
        return self._settle(state, self.now())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_state(self, player_id: str) -> EnergyState:
        """Current energy with regeneration applied (persisted)."""
        state = self._load(player_id)
        self._repo.save(player_id, state)
        return state

    def regen_timer(self, player_id: str) -> RegenTimer:
        state = self.get_state(player_id)
        now = self.now()
        next_in = regen_clock.time_to_next_regen(
            state.last_update, state.current, state.max, self._regen_interval, now
        )
        full_in = regen_clock.time_to_full(
            state.current, state.max, self._regen_amount, next_in, self._regen_interval
        )
        return RegenTimer(
            current=state.current,
            max=state.max,
            next_regen_in=next_in,
            full_in=full_in,
            full_at=now + timedelta(seconds=full_in) if full_in > 0 else None,
        )

    def dungeon_cost(self, difficulty: str) -> int:
        """
        Raises:
            NotFoundError: Unknown difficulty
        """
        cost = self._dungeon_costs.get(difficulty)
        if cost is None:
            raise NotFoundError("DungeonDifficulty", difficulty)
        return cost

    def can_enter(self, player_id: str, difficulty: str) -> bool:
        return self.get_state(player_id).current >= self.dungeon_cost(difficulty)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def recover_offline(self, player_id: str) -> int:
        """Credit energy accumulated while the player was away; returns the gain."""
        stored = self._repo.find(player_id) or self._fresh_state()
        settled = self._settle(stored, self.now())
        self._repo.save(player_id, settled)

        gained = settled.current - stored.current
        if gained > 0:
            self.log_operation(
                "energy.offline_recovery",
                player_id=player_id,
                gained=gained,
                current=settled.current,
            )
        return gained

    def consume(self, player_id: str, amount: int, reason: Optional[str] = None) -> EnergyState:
        """
        Spend energy.

        Raises:
            ValidationError: amount is not a positive integer
            InsufficientResourcesError: Not enough energy
        """
        self.validate_positive_int(amount, "amount")
        state = self._load(player_id)

        if state.current < amount:
            raise InsufficientResourcesError("energy", amount, state.current)

        last_update = self.now() if state.is_full else state.last_update
        updated = replace(state, current=state.current - amount, last_update=last_update)
        self._repo.save(player_id, updated)

        self.log_operation(
            "energy.consume",
            player_id=player_id,
            amount=amount,
            remaining=updated.current,
            reason=reason,
        )
        return updated

    def enter_dungeon(self, player_id: str, difficulty: str) -> EnergyState:
        return self.consume(player_id, self.dungeon_cost(difficulty), reason=f"dungeon:{difficulty}")

    def restore(self, player_id: str, amount: int, reason: Optional[str] = None) -> EnergyState:
        """Add energy, clamped at max."""
        self.validate_positive_int(amount, "amount")
        state = self._load(player_id)
        updated = replace(state, current=state.current + amount)
        if updated.is_full:
            updated = replace(updated, last_update=self.now())
        self._repo.save(player_id, updated)

        self.log_operation(
            "energy.restore",
            player_id=player_id,
            amount=updated.current - state.current,
            current=updated.current,
            reason=reason,
        )
        return updated

    def refill_on_level_up(self, player_id: str) -> EnergyState:
        state = self._load(player_id)
        updated = replace(state, current=state.max, last_update=self.now())
        self._repo.save(player_id, updated)
        self.log_operation("energy.level_up_refill", player_id=player_id, current=updated.current)
        return updated

    def claim_daily_bonus(self, player_id: str) -> DailyBonusResult:
        """
        Raises:
            CooldownActiveError: Bonus already claimed inside the cooldown window
        """
        now = self.now()
        state = self._load(player_id)

        remaining = regen_clock.claim_cooldown_remaining(
            state.last_daily_bonus_claim, now, self._bonus_cooldown_hours
        )
        if remaining > 0:
            raise CooldownActiveError("daily_bonus", remaining)

        streak = regen_clock.next_streak(
            state.last_daily_bonus_claim, state.daily_bonus_streak, now
        )
        updated = replace(
            state,
            current=state.current + self._daily_bonus,
            last_daily_bonus_claim=now,
            daily_bonus_streak=streak,
        )
        if updated.is_full:
            updated = replace(updated, last_update=now)
        self._repo.save(player_id, updated)

        granted = updated.current - state.current
        self.log_operation(
            "energy.daily_bonus",
            player_id=player_id,
            amount=granted,
            streak=streak,
        )
        return DailyBonusResult(amount=granted, streak=streak, state=updated)
