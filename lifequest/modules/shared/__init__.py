"""
Shared building blocks for engine modules: domain exceptions, the base
service class and the record storage boundary.
"""

from lifequest.modules.shared.base_service import BaseService, utc_now
from lifequest.modules.shared.exceptions import (
    CooldownActiveError,
    ErrorSeverity,
    InsufficientResourcesError,
    InvalidOperationError,
    LifeQuestDomainException,
    NotFoundError,
    ValidationError,
)
from lifequest.modules.shared.repository import (
    InMemoryRecordStore,
    RecordRepository,
    RecordStore,
)

__all__ = [
    "BaseService",
    "utc_now",
    "CooldownActiveError",
    "ErrorSeverity",
    "InsufficientResourcesError",
    "InvalidOperationError",
    "LifeQuestDomainException",
    "NotFoundError",
    "ValidationError",
    "InMemoryRecordStore",
    "RecordRepository",
    "RecordStore",
]
