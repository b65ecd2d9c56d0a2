"""
Base Service Foundation

Purpose
-------
Provides the foundational class for the engine's stateful services (energy,
tickets, dungeon progress). Services implement business rules on top of a
host-owned RecordStore and raise domain exceptions for rule violations.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access patterns
- Common validation helpers

What this class does NOT do:
- Own persistent state (the RecordStore does)
- Schedule timers or perform I/O of its own
- Act as a process-wide singleton (the host builds one instance and injects it)

Usage
-----
    class EnergyService(BaseService):
        def __init__(self, store, config_manager, clock=None):
            super().__init__(config_manager, get_logger(__name__))
            self._repo = RecordRepository(store, "energy", EnergyState)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

from lifequest.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from lifequest.core.config.manager import ConfigManager


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseService:
    """
    Base class for engine services.

    Args:
        config_manager: Game balance configuration
        logger: Structured logger instance
        clock: Callable returning "now"; injected so time is testable
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        logger: Logger,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config = config_manager
        self.log = logger
        self._clock: Clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    def get_config(self, key: str, default: Optional[Any] = None) -> Any:
        """Safely retrieve a configuration value."""
        return self._config.get(key, default)

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log a service operation with structured context."""
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def validate_positive_int(self, value: int, name: str) -> None:
        """
        Validate that a value is a positive integer.

        Raises:
            ValidationError: If value is not positive
        """
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValidationError(
                name, f"{name} must be a positive integer, got {value}"
            )
