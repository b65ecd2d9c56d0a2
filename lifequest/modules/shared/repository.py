"""
Record Repository Pattern

Purpose
-------
Provides the storage boundary between the engine and the host application.
Persistent state (energy, tickets, dungeon progress, skill-cast history) is
owned by the host and read/written through simple get/put calls on a
`RecordStore`. Repositories wrap a store with typed conversion to and from
domain records.

Design Notes
------------
- `RecordStore` is a structural Protocol: any object with matching `get`/`put`
  works (IndexedDB bridge, SQL table, JSON file, dict).
- Records are plain JSON-compatible dicts. Domain records implement
  `to_dict()` / `from_dict()` and the repository does the conversion.
- No business logic and no locking. The engine is single-threaded and every
  service call is a read-modify-write of one record.

Usage
-----
    store = InMemoryRecordStore()
    energy_repo = RecordRepository(store, "energy", EnergyState)
    state = energy_repo.load("player-1")
"""

from __future__ import annotations

import copy
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Optional,
    Protocol,
    Tuple,
    Type,
    TypeVar,
    runtime_checkable,
)

from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class RecordStore(Protocol):
    """Key-value record storage owned by the host application."""

    def get(self, namespace: str, key: str) -> Optional[Dict[str, Any]]:
        ...

    def put(self, namespace: str, key: str, record: Dict[str, Any]) -> None:
        ...


class InMemoryRecordStore:
    """Dict-backed RecordStore for tests and local hosts."""

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def get(self, namespace: str, key: str) -> Optional[Dict[str, Any]]:
        record = self._records.get((namespace, key))
        return copy.deepcopy(record) if record is not None else None

    def put(self, namespace: str, key: str, record: Dict[str, Any]) -> None:
        self._records[(namespace, key)] = copy.deepcopy(record)

    def __len__(self) -> int:
        return len(self._records)


class SerializableRecord(Protocol):
    def to_dict(self) -> Dict[str, Any]:
        ...


T = TypeVar("T", bound=SerializableRecord)


class RecordRepository(Generic[T]):
    """
    Typed access to one namespace of a RecordStore.

    Type Parameters:
        T: Record class exposing `to_dict()` and a `from_dict()` classmethod
    """

    def __init__(
        self,
        store: RecordStore,
        namespace: str,
        record_class: Type[T],
        factory: Optional[Callable[[], T]] = None,
        parser: Optional[Callable[[Dict[str, Any]], T]] = None,
    ) -> None:
        """
        Args:
            store: Host-owned record store
            namespace: Namespace for all keys handled by this repository
            record_class: Class used to parse stored dicts
            factory: Builds a fresh record when none is stored yet
            parser: Turns a stored dict into a record; defaults to `record_class.from_dict`
        """
        self._store = store
        self._namespace = namespace
        self._record_class = record_class
        self._factory = factory
        self._parse = parser or record_class.from_dict  # type: ignore[attr-defined]

    def find(self, key: str) -> Optional[T]:
        raw = self._store.get(self._namespace, key)
        if raw is None:
            return None
        return self._parse(raw)

    def load(self, key: str) -> T:
        """Return the stored record, or a fresh one from the factory."""
        record = self.find(key)
        if record is not None:
            return record
        if self._factory is None:
            raise LookupError(f"No {self._namespace} record for {key!r}")
        logger.debug(
            "Creating default record",
            extra={"namespace": self._namespace, "key": key},
        )
        return self._factory()

    def save(self, key: str, record: T) -> None:
        self._store.put(self._namespace, key, record.to_dict())
