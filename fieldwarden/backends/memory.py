"""
In-memory data backend.

Features:
- One RecordStore shared by several scope-bound backends
- Per-backend visibility predicate
- Failure injection for testing
"""

from typing import Any, Callable, Dict, List, Optional, Sequence
import threading
import uuid

from fieldwarden.backends.base import BackendError, DataBackend
from fieldwarden.records import Record
from fieldwarden.schema.types import VisibilityScope, normalize_field_name

VisibilityRule = Callable[[Record], bool]


def _visible_to_all(record: Record) -> bool:
    return True


class RecordStore:
    """Thread-safe table of persisted field values keyed by type and identifier."""

    def __init__(self):
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def get(self, record_type: str, record_id: str) -> Optional[Record]:
        with self._lock:
            values = self._tables.get(record_type, {}).get(record_id)
            if values is None:
                return None
            return Record(record_type, dict(values), record_id)

    def put(self, record: Record) -> None:
        with self._lock:
            self._tables.setdefault(record.record_type, {})[record.record_id] = record.to_dict()

    def remove(self, record_type: str, record_id: str) -> bool:
        with self._lock:
            return self._tables.get(record_type, {}).pop(record_id, None) is not None

    def count(self, record_type: str) -> int:
        with self._lock:
            return len(self._tables.get(record_type, {}))


class InMemoryDataBackend(DataBackend):
    """
    Scope-bound backend over a RecordStore.

    Rows the visibility rule rejects behave exactly like missing rows: they
    are never returned by ``query`` and cannot be updated or deleted.

    Example:
        ```python
        store = RecordStore()
        backends = {
            VisibilityScope.RESTRICTED: InMemoryDataBackend(
                VisibilityScope.RESTRICTED, store, lambda r: r.get("owner") == "me"
            ),
            VisibilityScope.UNRESTRICTED: InMemoryDataBackend(VisibilityScope.UNRESTRICTED, store),
            VisibilityScope.INHERITED: InMemoryDataBackend(VisibilityScope.INHERITED, store),
        }
        ```
    """

    def __init__(
        self,
        scope: VisibilityScope,
        store: Optional[RecordStore] = None,
        visibility: Optional[VisibilityRule] = None
    ):
        """
        Initialize backend.

        Args:
            scope: Row-visibility scope of this backend
            store: Shared record store (default: a new one)
            visibility: Predicate deciding which rows this scope can see
        """
        super().__init__(scope)
        self.store = store if store is not None else RecordStore()
        self.visibility = visibility or _visible_to_all
        self._fail_next: Dict[str, str] = {}

    def fail_next(self, operation: str, message: str = "Simulated backend failure") -> None:
        """Make the next call of ``operation`` raise BackendError."""
        self._fail_next[operation] = message

    def _check_failure(self, operation: str) -> None:
        message = self._fail_next.pop(operation, None)
        if message is not None:
            raise BackendError(message)

    def _visible(self, record_type: str, record_id: Optional[str]) -> Optional[Record]:
        if record_id is None:
            return None
        current = self.store.get(record_type, record_id)
        if current is None or not self.visibility(current):
            return None
        return current

    def query(self, selection: Sequence[str], record_type: str, record_id: str) -> List[Record]:
        self._check_failure("query")

        current = self._visible(record_type, record_id)
        if current is None:
            return []

        result = Record(record_type, record_id=record_id)
        for name in selection:
            result[name] = current.get(normalize_field_name(name))
        return [result]

    def insert(self, record: Record) -> Record:
        self._check_failure("insert")

        if record.record_id is not None and self.store.get(record.record_type, record.record_id):
            raise BackendError(f"Duplicate identifier {record.record_id}")

        stored = record.copy()
        stored.record_id = record.record_id or uuid.uuid4().hex
        self.store.put(stored)
        return stored.copy()

    def update(self, record: Record) -> Record:
        self._check_failure("update")

        current = self._visible(record.record_type, record.record_id)
        if current is None:
            raise BackendError(f"Entity is deleted or not visible: {record.record_id}")

        for name in record:
            current[name] = record[name]
        self.store.put(current)
        return current.copy()

    def delete(self, record: Record) -> None:
        self._check_failure("delete")

        if self._visible(record.record_type, record.record_id) is None:
            raise BackendError(f"Entity is deleted or not visible: {record.record_id}")

        self.store.remove(record.record_type, record.record_id)
