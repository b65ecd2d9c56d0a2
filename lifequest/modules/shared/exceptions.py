"""
Engine exception hierarchy.

Only rule violations a host can act on are raised: spending a resource the
player lacks, claiming a daily bonus early, advancing a finished battle,
asking for a dungeon that is not in the tables. Bad table rows, negative
numbers and clock skew inside the engine are clamped or skipped instead.

Every exception exposes:
- `error_code`: stable upper-case identifier for host-side message lookup
- `details`:    structured payload, also logged through `extra`
- `severity`:   how loudly the host should log it
- `is_retryable`: True when the same call can succeed later unchanged
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    DEBUG = "debug"  # expected timing rejections
    INFO = "info"  # player-facing rule violations
    WARNING = "warning"
    ERROR = "error"  # programmer or infrastructure faults
    CRITICAL = "critical"


class LifeQuestDomainException(Exception):
    """Root of every rule violation raised by engine services."""

    severity_level: ErrorSeverity = ErrorSeverity.ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        error_code: Optional[str] = None,
        severity: Optional[ErrorSeverity] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.error_code = error_code or self.__class__.__name__.upper()
        self.severity = severity or self.severity_level

    @property
    def is_retryable(self) -> bool:
        return self.retryable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class InsufficientResourcesError(LifeQuestDomainException):
    """Energy or tickets below the cost of the requested action."""

    severity_level = ErrorSeverity.INFO

    def __init__(self, resource: str, required: int, current: int) -> None:
        self.resource = resource
        self.required = required
        self.current = current
        super().__init__(
            f"Not enough {resource} (need {required}, have {current})",
            {"resource": resource, "required": required, "current": current, "deficit": required - current},
            error_code=f"INSUFFICIENT_{resource.upper()}",
        )


class NotFoundError(LifeQuestDomainException):
    """A dungeon, difficulty or other table key the host asked for does not exist."""

    severity_level = ErrorSeverity.INFO

    def __init__(self, kind: str, key: Optional[Any] = None) -> None:
        self.kind = kind
        self.key = key
        message = f"{kind} not found" if key is None else f"{kind} not found: {key}"
        super().__init__(message, {"kind": kind, "key": key}, error_code=f"{kind.upper()}_NOT_FOUND")


class ValidationError(LifeQuestDomainException):
    """Caller-supplied arguments that no clamping can make sense of."""

    severity_level = ErrorSeverity.INFO

    def __init__(self, field: str, problem: str) -> None:
        self.field = field
        self.problem = problem
        super().__init__(
            f"Invalid {field}: {problem}",
            {"field": field, "problem": problem},
            error_code=f"INVALID_{field.upper()}",
        )


class CooldownActiveError(LifeQuestDomainException):
    """
    A timed claim (daily energy bonus) attempted before its window opens.

    `remaining_seconds` is how long the host should wait before retrying.
    """

    severity_level = ErrorSeverity.DEBUG
    retryable = True

    def __init__(self, action: str, remaining_seconds: float) -> None:
        self.action = action
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"{action} available again in {remaining_seconds:.0f}s",
            {"action": action, "retry_after": remaining_seconds},
            error_code="COOLDOWN_ACTIVE",
        )


class InvalidOperationError(LifeQuestDomainException):
    """A call that the current state does not allow, e.g. advancing a finished battle."""

    severity_level = ErrorSeverity.INFO

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Cannot {action.replace('_', ' ')}: {reason}",
            {"action": action, "reason": reason},
            error_code=f"CANNOT_{action.upper()}",
        )


def is_transient_error(exc: Exception) -> bool:
    return isinstance(exc, LifeQuestDomainException) and exc.is_retryable


def get_error_severity(exc: Exception) -> ErrorSeverity:
    if isinstance(exc, LifeQuestDomainException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True for faults an operator should look at, not player mistakes."""
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
