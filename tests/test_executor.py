import json
import logging

import pytest

from fieldwarden.access import ExecutorSettings, VisibilityScopeExecutor
from fieldwarden.core import (
    AccessViolationError,
    ConfigurationError,
    ErrorCode,
    InvalidArgumentError,
    NotFoundError,
    OperationFailedError,
)
from fieldwarden.records import Record
from fieldwarden.schema import OperationMode, PermissionKind, ViolationKind, VisibilityScope

from tests.conftest import OWNER


@pytest.fixture
def restricted(backends):
    return backends[VisibilityScope.RESTRICTED]


def _executor(schema, backends, mode=OperationMode.ALL_OR_NONE, scope=VisibilityScope.RESTRICTED):
    return VisibilityScopeExecutor(scope, backends[scope], schema, settings=ExecutorSettings(mode))


# Insert

def test_all_or_none_insert_rejects_disallowed_field(schema, backends, restricted) -> None:
    executor = _executor(schema, backends)

    with pytest.raises(AccessViolationError) as exc_info:
        executor.insert(Record("widget", {"A": 1, "B": 2}), ["A", "B"])

    violation = exc_info.value.violation
    assert violation.kind == ViolationKind.FIELD_LEVEL
    assert violation.permission == PermissionKind.CREATE
    assert violation.field == "b"
    assert exc_info.value.error_code == ErrorCode.FIELD_ACCESS_DENIED
    assert restricted.calls == []


def test_best_effort_insert_drops_disallowed_field(schema, backends, restricted, store) -> None:
    executor = _executor(schema, backends, OperationMode.BEST_EFFORT)

    saved = executor.insert(Record("widget", {"A": 1, "B": 2}), ["A", "B"])

    assert len(restricted.calls) == 1
    operation, written = restricted.calls[0]
    assert operation == "insert"
    assert written.to_dict() == {"a": 1}
    assert saved.record_id is not None
    assert store.count("widget") == 1


def test_insert_copies_requested_fields_only(schema, backends, restricted) -> None:
    executor = _executor(schema, backends)

    executor.insert(Record("account", {"name": "Acme", "industry": "Retail"}), ["name"])

    _, written = restricted.calls[0]
    assert written.to_dict() == {"name": "Acme"}


def test_insert_never_mutates_caller_record(schema, backends) -> None:
    executor = _executor(schema, backends, OperationMode.BEST_EFFORT)
    record = Record("widget", {"A": 1, "B": 2})

    executor.insert(record, ["A", "B"])

    assert record.to_dict() == {"a": 1, "b": 2}
    assert record.record_id is None


def test_best_effort_insert_writes_even_when_nothing_passes(schema, backends, restricted) -> None:
    executor = _executor(schema, backends, OperationMode.BEST_EFFORT)

    executor.insert(Record("widget", {"B": 2}), ["B"])

    assert [c[0] for c in restricted.calls] == ["insert"]
    assert restricted.calls[0][1].to_dict() == {}


# Update

def test_update_writes_into_fetched_record(schema, backends, restricted, seed, store) -> None:
    seed("account", "acc-1", name="Old", industry="Tech", rating=1, owner=OWNER, secret="s3")
    executor = _executor(schema, backends)

    executor.update(
        Record("account", {"name": "New", "industry": "Retail", "rating": 5}, "acc-1"),
        ["name", "rating"],
    )

    query = restricted.calls[0]
    assert query == ("query", ["name", "industry", "rating", "owner", "secret"], "account", "acc-1")
    assert store.get("account", "acc-1").to_dict() == {
        "name": "New",
        "industry": "Tech",
        "rating": 5,
        "owner": OWNER,
        "secret": "s3",
    }


def test_all_or_none_update_rejects_before_write(schema, backends, restricted, seed) -> None:
    seed("account", "acc-1", name="Old", owner=OWNER)
    executor = _executor(schema, backends)

    with pytest.raises(AccessViolationError) as exc_info:
        executor.update(Record("account", {"industry": "Retail"}, "acc-1"), ["name", "industry"])

    assert exc_info.value.violation.field == "industry"
    assert exc_info.value.violation.permission == PermissionKind.UPDATE
    assert restricted.writes() == []


def test_best_effort_update_drops_disallowed_field(schema, backends, seed, store) -> None:
    seed("account", "acc-1", name="Old", industry="Tech", owner=OWNER)
    executor = _executor(schema, backends, OperationMode.BEST_EFFORT)

    executor.update(Record("account", {"name": "New", "industry": "Retail"}, "acc-1"), ["industry", "name"])

    current = store.get("account", "acc-1")
    assert current["name"] == "New"
    assert current["industry"] == "Tech"


def test_best_effort_update_writes_even_when_nothing_passes(schema, backends, restricted, seed, store) -> None:
    seed("account", "acc-1", name="Old", industry="Tech", rating=1, owner=OWNER, secret="s3")
    before = store.get("account", "acc-1").to_dict()
    executor = _executor(schema, backends, OperationMode.BEST_EFFORT)

    executor.update(Record("account", {"industry": "Retail"}, "acc-1"), ["industry"])

    assert [c[0] for c in restricted.writes()] == ["update"]
    assert store.get("account", "acc-1").to_dict() == before


def test_update_of_invisible_record_is_not_found(schema, backends, restricted, seed) -> None:
    seed("account", "acc-2", name="Hidden", owner="bob")
    executor = _executor(schema, backends)

    with pytest.raises(NotFoundError) as invisible:
        executor.update(Record("account", {"name": "New"}, "acc-2"), ["name"])
    with pytest.raises(NotFoundError) as absent:
        executor.update(Record("account", {"name": "New"}, "missing"), ["name"])

    assert invisible.value.error_code == absent.value.error_code == ErrorCode.RECORD_NOT_FOUND
    assert restricted.writes() == []


def test_update_of_invisible_record_takes_precedence_over_field_check(schema, backends, seed) -> None:
    seed("account", "acc-2", name="Hidden", owner="bob")
    executor = _executor(schema, backends)

    with pytest.raises(NotFoundError):
        executor.update(Record("account", {"industry": "Retail"}, "acc-2"), ["industry"])


def test_update_under_unrestricted_scope_sees_every_row(schema, backends, seed, store) -> None:
    seed("account", "acc-2", name="Hidden", owner="bob")
    executor = _executor(schema, backends, scope=VisibilityScope.UNRESTRICTED)

    executor.update(Record("account", {"name": "Seen"}, "acc-2"), ["name"])

    assert store.get("account", "acc-2")["name"] == "Seen"


def test_update_requires_identifier(schema, backends) -> None:
    executor = _executor(schema, backends)

    with pytest.raises(InvalidArgumentError):
        executor.update(Record("account", {"name": "x"}), ["name"])


# Delete

def test_delete_removes_visible_record(schema, backends, seed, store) -> None:
    seed("account", "acc-1", name="Old", owner=OWNER)
    executor = _executor(schema, backends)

    executor.delete(Record("account", record_id="acc-1"))

    assert store.get("account", "acc-1") is None


# Object-level permissions

@pytest.mark.parametrize(
    "operation, permission",
    [
        (lambda e: e.insert(Record("contact", {"email": "a@b.c"}), ["email"]), PermissionKind.CREATE),
        (lambda e: e.update(Record("contact", {"email": "a@b.c"}, "c-1"), ["email"]), PermissionKind.UPDATE),
        (lambda e: e.delete(Record("contact", record_id="c-1")), PermissionKind.DELETE),
    ],
)
def test_object_level_denial_short_circuits(schema, backends, restricted, seed, operation, permission) -> None:
    seed("contact", "c-1", email="x@y.z", owner=OWNER)
    executor = _executor(schema, backends)
    describe_calls = schema.describe_calls

    with pytest.raises(AccessViolationError) as exc_info:
        operation(executor)

    violation = exc_info.value.violation
    assert violation.kind == ViolationKind.OBJECT_LEVEL
    assert violation.permission == permission
    assert violation.record_type == "contact"
    assert violation.field is None
    assert exc_info.value.error_code == ErrorCode.OBJECT_ACCESS_DENIED
    assert schema.describe_calls == describe_calls
    assert restricted.calls == []


# Backend failures

@pytest.mark.parametrize(
    "failing, expected",
    [("insert", "insert"), ("query", "query"), ("update", "update"), ("delete", "delete")],
)
def test_backend_failures_are_wrapped(schema, backends, restricted, seed, failing, expected) -> None:
    seed("account", "acc-1", name="Old", owner=OWNER)
    executor = _executor(schema, backends)
    restricted.fail_next(failing, "connection reset by peer")

    with pytest.raises(OperationFailedError) as exc_info:
        if failing == "insert":
            executor.insert(Record("account", {"name": "New"}), ["name"])
        elif failing == "delete":
            executor.delete(Record("account", record_id="acc-1"))
        else:
            executor.update(Record("account", {"name": "New"}, "acc-1"), ["name"])

    error = exc_info.value
    assert error.operation == expected
    assert "connection reset" not in str(error)
    assert error.cause is not None
    assert error.to_dict()["cause"] == "BackendError"
    assert "connection reset" not in str(error.to_dict())


def test_delete_of_invisible_record_fails(schema, backends, seed) -> None:
    seed("account", "acc-2", owner="bob")
    executor = _executor(schema, backends)

    with pytest.raises(OperationFailedError) as exc_info:
        executor.delete(Record("account", record_id="acc-2"))

    assert exc_info.value.operation == "delete"


# Arguments

@pytest.mark.parametrize(
    "call",
    [
        lambda e: e.insert(None, ["name"]),
        lambda e: e.insert(Record("account", {"name": "x"}), []),
        lambda e: e.insert(Record("account", {"name": "x"}), "name"),
        lambda e: e.insert(Record("account", {"name": "x"}), None),
        lambda e: e.update(None, ["name"]),
        lambda e: e.update(Record("account", {"name": "x"}, "acc-1"), []),
        lambda e: e.delete(None),
        lambda e: e.viewable_fields(None),
    ],
)
def test_invalid_arguments_are_rejected_before_io(schema, backends, restricted, call) -> None:
    executor = _executor(schema, backends)

    with pytest.raises(InvalidArgumentError):
        call(executor)

    assert restricted.calls == []
    assert schema.describe_calls == 0


def test_executor_rejects_backend_of_another_scope(schema, backends) -> None:
    with pytest.raises(ConfigurationError):
        VisibilityScopeExecutor(
            VisibilityScope.RESTRICTED, backends[VisibilityScope.UNRESTRICTED], schema
        )


def test_fetch_returns_viewable_fields_only(schema, backends, seed) -> None:
    seed("account", "acc-1", name="Acme", owner=OWNER, secret="s3")
    executor = _executor(schema, backends)

    fetched = executor.fetch("account", "acc-1")

    assert "secret" not in fetched
    assert fetched["name"] == "Acme"

    with pytest.raises(NotFoundError):
        executor.fetch("account", "missing")


# Settings

@pytest.mark.parametrize("mode", [None, "strict", 1])
def test_settings_reject_invalid_mode(mode) -> None:
    with pytest.raises(ConfigurationError):
        ExecutorSettings(mode)


def test_settings_keep_mode_after_rejected_assignment() -> None:
    settings = ExecutorSettings(" Best_Effort ")
    assert settings.mode == OperationMode.BEST_EFFORT

    with pytest.raises(ConfigurationError):
        settings.mode = "bogus"

    assert settings.mode == OperationMode.BEST_EFFORT


@pytest.mark.parametrize("scope", [None, "everyone"])
def test_executor_rejects_invalid_scope(schema, backends, scope) -> None:
    with pytest.raises(ConfigurationError):
        VisibilityScopeExecutor(scope, backends[VisibilityScope.RESTRICTED], schema)


# Logging

def test_denial_is_logged_without_audit_log(schema, backends, caplog) -> None:
    executor = _executor(schema, backends)

    with caplog.at_level(logging.WARNING, logger="fieldwarden.executor.restricted"):
        with pytest.raises(AccessViolationError):
            executor.insert(Record("widget", {"A": 1, "B": 2}), ["A", "B"])

    entries = [json.loads(r.getMessage()) for r in caplog.records if r.levelno == logging.WARNING]
    assert len(entries) == 1
    assert entries[0]["event"] == "Access denied"
    assert entries[0]["operation"] == "insert"
    assert entries[0]["kind"] == "field_level"
    assert entries[0]["field"] == "b"
