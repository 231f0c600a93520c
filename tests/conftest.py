"""Shared fixtures: an in-memory schema, a shared record store and one recording backend per scope."""

from typing import Any, List, Sequence, Tuple

import pytest

from fieldwarden.access import AccessAuditLog, AccessControlEngine
from fieldwarden.backends import InMemoryDataBackend, RecordStore
from fieldwarden.core import MetricsCollector
from fieldwarden.records import Record
from fieldwarden.schema import (
    FieldDescriptor,
    InMemorySchemaProvider,
    ObjectPermissions,
    OperationMode,
    VisibilityScope,
)

OWNER = "alice"


class RecordingBackend(InMemoryDataBackend):
    """In-memory backend that remembers every primitive call."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.calls: List[Tuple[Any, ...]] = []

    def writes(self) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] != "query"]

    def query(self, selection: Sequence[str], record_type: str, record_id: str):
        self.calls.append(("query", list(selection), record_type, record_id))
        return super().query(selection, record_type, record_id)

    def insert(self, record: Record):
        self.calls.append(("insert", record.copy()))
        return super().insert(record)

    def update(self, record: Record):
        self.calls.append(("update", record.copy()))
        return super().update(record)

    def delete(self, record: Record):
        self.calls.append(("delete", record.copy()))
        return super().delete(record)


class CountingSchemaProvider(InMemorySchemaProvider):
    """Schema provider that counts describe calls."""

    def __init__(self):
        super().__init__()
        self.describe_calls = 0

    def describe(self, record_type: str):
        self.describe_calls += 1
        return super().describe(record_type)


@pytest.fixture
def schema() -> CountingSchemaProvider:
    provider = CountingSchemaProvider()
    provider.register(
        "account",
        [
            FieldDescriptor(name="name", viewable=True, creatable=True, updateable=True),
            FieldDescriptor(name="industry", viewable=True, creatable=True, updateable=False),
            FieldDescriptor(name="rating", viewable=True, creatable=False, updateable=True),
            FieldDescriptor(name="owner", viewable=True, creatable=True, updateable=False),
            FieldDescriptor(name="secret"),
        ],
    )
    provider.register(
        "widget",
        [
            FieldDescriptor(name="A", viewable=True, creatable=True, updateable=True),
            FieldDescriptor(name="B", viewable=True, creatable=False, updateable=False),
        ],
    )
    provider.register(
        "contact",
        [FieldDescriptor(name="email", viewable=True, creatable=True, updateable=True)],
        ObjectPermissions(createable=False, updateable=False, deletable=False),
    )
    return provider


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def backends(store):
    return {
        VisibilityScope.RESTRICTED: RecordingBackend(
            VisibilityScope.RESTRICTED, store, lambda r: r.get("owner") == OWNER
        ),
        VisibilityScope.UNRESTRICTED: RecordingBackend(VisibilityScope.UNRESTRICTED, store),
        VisibilityScope.INHERITED: RecordingBackend(VisibilityScope.INHERITED, store),
    }


@pytest.fixture
def audit_log() -> AccessAuditLog:
    return AccessAuditLog()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def engine(schema, backends, audit_log, metrics) -> AccessControlEngine:
    return AccessControlEngine(
        schema,
        backends,
        scope=VisibilityScope.RESTRICTED,
        mode=OperationMode.ALL_OR_NONE,
        audit_log=audit_log,
        metrics=metrics,
    )


@pytest.fixture
def seed(store):
    """Persist a record directly, bypassing mediation."""

    def _seed(record_type: str, record_id: str, **values: Any) -> Record:
        record = Record(record_type, values, record_id)
        store.put(record)
        return record

    return _seed
