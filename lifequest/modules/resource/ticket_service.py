"""
TicketService - Business logic for battle tickets
=================================================

Handles:
- Daily ticket reset at a fixed local hour
- Spending tickets on auto-battles
- Ticket rewards and purchases, capped at the ticket maximum

Gold for purchases is charged by the host; this service only quotes the
price and credits the tickets.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import partial
from typing import Optional

from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger
from lifequest.modules.resource import regen_clock
from lifequest.modules.resource.state import TicketState
from lifequest.modules.shared.base_service import BaseService, Clock
from lifequest.modules.shared.exceptions import (
    InsufficientResourcesError,
    InvalidOperationError,
)
from lifequest.modules.shared.repository import RecordRepository, RecordStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class TicketPurchase:
    tickets_added: int
    gold_cost: int
    state: TicketState


class TicketService(BaseService):
    """
    Battle ticket bookkeeping.

    The clock should return local time (`regen_clock.local_now`) so the
    reset hour matches the player's day.
    """

    NAMESPACE = "tickets"

    def __init__(
        self,
        store: RecordStore,
        config_manager: ConfigManager,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(config_manager, logger, clock or regen_clock.local_now)
        self._daily_tickets = int(self.get_config("tickets.daily_tickets", 10))
        self._max_tickets = int(self.get_config("tickets.max_tickets", 50))
        self._reset_hour = int(self.get_config("tickets.reset_hour", 4))
        self._purchase_amount = int(self.get_config("tickets.purchase_amount", 5))
        self._purchase_cost = int(self.get_config("tickets.purchase_cost_gold", 100))
        self._repo = RecordRepository(
            store,
            self.NAMESPACE,
            TicketState,
            parser=partial(TicketState.from_dict, default_max=self._max_tickets),
        )

        self.log.info(
            "TicketService initialized",
            extra={
                "daily_tickets": self._daily_tickets,
                "max_tickets": self._max_tickets,
                "reset_hour": self._reset_hour,
            },
        )

    def _load(self, player_id: str) -> TicketState:
        now = self.now()
        state = self._repo.find(player_id)
        if state is None:
            state = TicketState(count=self._daily_tickets, max=self._max_tickets, last_reset=now)
            self._repo.save(player_id, state)
            return state

        if regen_clock.should_reset(state.last_reset, now, self._reset_hour):
            # Purchased or rewarded tickets above the daily amount survive the reset.
            state = replace(
                state,
                count=max(state.count, self._daily_tickets),
                last_reset=now,
            )
            self._repo.save(player_id, state)
            self.log_operation("tickets.daily_reset", player_id=player_id, count=state.count)
        return state

    def get_state(self, player_id: str) -> TicketState:
        return self._load(player_id)

    def time_until_reset(self) -> int:
        return regen_clock.time_to_reset(self.now(), self._reset_hour)

    def use_ticket(self, player_id: str, reason: str = "auto_battle") -> TicketState:
        """
        Raises:
            InsufficientResourcesError: No tickets left
        """
        state = self._load(player_id)
        if state.count <= 0:
            raise InsufficientResourcesError("tickets", 1, state.count)

        updated = replace(state, count=state.count - 1)
        self._repo.save(player_id, updated)
        self.log_operation("tickets.use", player_id=player_id, remaining=updated.count, reason=reason)
        return updated

    def add_tickets(self, player_id: str, amount: int, reason: str = "reward") -> TicketState:
        self.validate_positive_int(amount, "amount")
        state = self._load(player_id)
        updated = replace(state, count=min(state.count + amount, state.max))
        self._repo.save(player_id, updated)
        self.log_operation(
            "tickets.add",
            player_id=player_id,
            amount=updated.count - state.count,
            count=updated.count,
            reason=reason,
        )
        return updated

    def purchase_quote(self, bundles: int = 1) -> int:
        """Gold price of `bundles` ticket bundles."""
        self.validate_positive_int(bundles, "bundles")
        return bundles * self._purchase_cost

    def purchase(self, player_id: str, bundles: int = 1) -> TicketPurchase:
        """
        Credit purchased tickets. The host charges `gold_cost` afterwards.

        Raises:
            InvalidOperationError: Ticket cap already reached
        """
        cost = self.purchase_quote(bundles)
        state = self._load(player_id)
        target = min(state.count + bundles * self._purchase_amount, state.max)
        if target == state.count:
            raise InvalidOperationError("purchase_tickets", "ticket cap reached")

        updated = replace(state, count=target)
        self._repo.save(player_id, updated)
        self.log_operation(
            "tickets.purchase",
            player_id=player_id,
            added=target - state.count,
            gold_cost=cost,
        )
        return TicketPurchase(tickets_added=target - state.count, gold_cost=cost, state=updated)
