"""
Resource Regeneration Clock and the services built on it.

- regen_clock: pure time arithmetic (regeneration, offline catch-up,
  daily resets, bonus eligibility)
- EnergyService / TicketService: persisted bookkeeping on a RecordStore
"""

from lifequest.modules.resource.energy_service import (
    DailyBonusResult,
    EnergyService,
    RegenTimer,
)
from lifequest.modules.resource.state import EnergyState, TicketState
from lifequest.modules.resource.ticket_service import TicketPurchase, TicketService

__all__ = [
    "DailyBonusResult",
    "EnergyService",
    "EnergyState",
    "RegenTimer",
    "TicketPurchase",
    "TicketService",
    "TicketState",
]
