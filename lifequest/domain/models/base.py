"""
Identity, domain events and validation helpers shared by the domain records.

Most records in this package are frozen value dataclasses and need none of
this. The exception is the battle: it has an id, changes state turn by turn
and reports its milestones (`battle.started`, `battle.victory`, ...) as
domain events that the host drains after each `advance`.

Validation here is reserved for values that cannot be repaired by clamping,
such as an item without a name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass(frozen=True)
class DomainEvent:
    """A named state change with its payload, stamped in UTC."""

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# ENTITIES
# ============================================================================


class Entity:
    """Record compared by id rather than by field values."""

    def __init__(self, entity_id: str) -> None:
        self._id = entity_id

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Entity) and type(other) is type(self) and other.id == self.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))


class AggregateRoot(Entity):
    """
    Entity that buffers domain events until the host collects them.

    Events accumulate in emission order. `clear_domain_events` hands them
    over and empties the buffer; `get_pending_events` only peeks.
    """

    def __init__(self, entity_id: str) -> None:
        super().__init__(entity_id)
        self._events: List[DomainEvent] = []

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        self._events.append(DomainEvent(event_name, dict(payload)))

    def get_pending_events(self) -> List[DomainEvent]:
        return list(self._events)

    def clear_domain_events(self) -> List[DomainEvent]:
        drained, self._events = self._events, []
        return drained


# ============================================================================
# VALIDATION
# ============================================================================


class DomainValidationError(ValueError):
    """A record field holds a value no clamp can fix."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


def validate_non_negative(value: float, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(f"{field_name} must be >= 0 (got {value})", field=field_name)


def validate_not_empty(value: str, field_name: str) -> None:
    if not value or not str(value).strip():
        raise DomainValidationError(f"{field_name} is required", field=field_name)
