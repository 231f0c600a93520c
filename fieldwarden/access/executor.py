"""
Visibility-Scope Executor - Permission-checked storage calls.

Each executor is bound to one visibility scope and one data backend when it
is constructed and keeps them for its whole life. The engine holds one
executor per scope and picks an instance; an executor never branches on
scope itself.

Every write follows the same steps:
1. Reject missing records and empty field sets
2. Check the object-level permission
3. Filter the requested fields through the permission policy
4. Hand a clean record to the backend, wrapping any backend failure
"""

from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional
from contextlib import contextmanager
from dataclasses import dataclass
import time

from fieldwarden.access.audit import AccessAuditLog, AuditOutcome
from fieldwarden.access.policy import PermissionPolicy
from fieldwarden.access.resolver import FieldPermissionResolver
from fieldwarden.backends.base import DataBackend
from fieldwarden.core.config import coerce_setting
from fieldwarden.core.exceptions import (
    AccessViolationError,
    ConfigurationError,
    InvalidArgumentError,
    NotFoundError,
    OperationFailedError,
)
from fieldwarden.core.observability import LogLevel, MetricsCollector, StructuredLogger
from fieldwarden.records import Record
from fieldwarden.schema.provider import SchemaProvider
from fieldwarden.schema.types import (
    AccessViolation,
    OperationMode,
    PermissionKind,
    ViolationKind,
    VisibilityScope,
)


class ExecutorSettings:
    """
    Settings shared by reference between the executors of one engine.

    Changing ``mode`` here changes it for every executor at once.
    """

    def __init__(self, mode: OperationMode = OperationMode.ALL_OR_NONE):
        self.mode = mode

    @property
    def mode(self) -> OperationMode:
        return self._mode

    @mode.setter
    def mode(self, value: OperationMode) -> None:
        self._mode = coerce_setting(OperationMode, value, "mode")

    def __repr__(self) -> str:
        return f"ExecutorSettings(mode={self.mode.value})"


@dataclass(frozen=True)
class FetchResult:
    """Result of reading one record back by identifier."""

    record: Optional[Record] = None

    @property
    def found(self) -> bool:
        return self.record is not None


class VisibilityScopeExecutor:
    """
    Mediates insert, update and delete under one fixed visibility scope.

    The read-back performed by ``update`` goes through the same backend as
    the write, so a single call never mixes scopes.
    """

    def __init__(
        self,
        scope: VisibilityScope,
        backend: DataBackend,
        schema: SchemaProvider,
        settings: Optional[ExecutorSettings] = None,
        audit_log: Optional[AccessAuditLog] = None,
        metrics: Optional[MetricsCollector] = None,
        log_level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize executor.

        Args:
            scope: Visibility scope this executor runs under
            backend: Storage backend bound to the same scope
            schema: Per-actor schema metadata
            settings: Shared settings (mode)
            audit_log: Audit trail for mediated operations
            metrics: Metrics collector
            log_level: Logging level for this executor

        Raises:
            ConfigurationError: If the scope is unrecognized or the backend
                is bound to a different scope
        """
        scope = coerce_setting(VisibilityScope, scope, "scope")
        if backend.scope != scope:
            raise ConfigurationError(
                f"Backend scope '{backend.scope.value}' does not match executor scope '{scope.value}'",
                {"scope": scope.value, "backend_scope": backend.scope.value}
            )

        self._scope = scope
        self._backend = backend
        self.schema = schema
        self.resolver = FieldPermissionResolver(schema)
        self.settings = settings or ExecutorSettings()
        self.audit_log = audit_log
        self.metrics = metrics
        self.logger = StructuredLogger(f"executor.{scope.value}", log_level)

    @property
    def scope(self) -> VisibilityScope:
        return self._scope

    @property
    def backend(self) -> DataBackend:
        return self._backend

    @property
    def mode(self) -> OperationMode:
        return self.settings.mode

    # Writes

    def insert(self, record: Record, fields_to_set: Iterable[str]) -> Record:
        """
        Insert a record with only the creatable subset of its fields.

        Args:
            record: Caller's record (never modified)
            fields_to_set: Field names to copy, in caller order

        Returns:
            The record returned by the backend

        Raises:
            InvalidArgumentError: Missing record or empty field set
            AccessViolationError: Missing object- or field-level create permission
            OperationFailedError: The backend insert failed
        """
        with self._operation("insert", record) as details:
            self._require_record(record)
            fields = self._require_fields(fields_to_set)
            mode = self.settings.mode

            record_type = record.record_type
            self._check_object_permission(record_type, PermissionKind.CREATE)

            creatable = self.resolver.resolve(record_type).creatable
            decision = PermissionPolicy.enforce(
                fields, creatable, mode, record_type, PermissionKind.CREATE
            )

            clean = Record.blank(record_type)
            for name in decision.approved:
                clean[name] = record.get(name)

            details["fields"] = list(decision.approved)
            if decision.dropped:
                details["dropped"] = list(decision.dropped)
                self.logger.debug(
                    "Fields dropped",
                    operation="insert",
                    record_type=record_type,
                    dropped=list(decision.dropped)
                )

            return self._call_backend("insert", record_type, self._backend.insert, clean)

    def update(self, record: Record, fields_to_update: Iterable[str]) -> Record:
        """
        Update a persisted record with only the updateable subset of fields.

        The current row is read back under this executor's scope, selecting
        every described field, and approved values are written into that
        clean copy.

        Args:
            record: Caller's record carrying the identifier and new values
            fields_to_update: Field names to change, in caller order

        Returns:
            The record returned by the backend

        Raises:
            InvalidArgumentError: Missing record, identifier or field set
            AccessViolationError: Missing object- or field-level update permission
            NotFoundError: No row with that identifier is visible in this scope
            OperationFailedError: The backend read or write failed
        """
        with self._operation("update", record) as details:
            self._require_record(record)
            if record.record_id is None:
                raise InvalidArgumentError(
                    "Record identifier is required for update",
                    {"record_type": record.record_type}
                )
            fields = self._require_fields(fields_to_update)
            mode = self.settings.mode

            record_type = record.record_type
            self._check_object_permission(record_type, PermissionKind.UPDATE)

            snapshot = self.resolver.snapshot(record_type)
            fetched = self._fetch(record_type, record.record_id, list(snapshot))
            if not fetched.found:
                raise NotFoundError(record_type, record.record_id)

            updateable = self.resolver.resolve(record_type, snapshot).updateable
            decision = PermissionPolicy.enforce(
                fields, updateable, mode, record_type, PermissionKind.UPDATE
            )

            clean = fetched.record
            for name in decision.approved:
                clean[name] = record.get(name)

            details["fields"] = list(decision.approved)
            if decision.dropped:
                details["dropped"] = list(decision.dropped)
                self.logger.debug(
                    "Fields dropped",
                    operation="update",
                    record_type=record_type,
                    dropped=list(decision.dropped)
                )

            return self._call_backend("update", record_type, self._backend.update, clean)

    def delete(self, record: Record) -> None:
        """
        Delete a record. No field filtering applies.

        Raises:
            InvalidArgumentError: Missing record
            AccessViolationError: Missing object-level delete permission
            OperationFailedError: The backend delete failed
        """
        with self._operation("delete", record):
            self._require_record(record)
            self._check_object_permission(record.record_type, PermissionKind.DELETE)
            self._call_backend("delete", record.record_type, self._backend.delete, record)

    # Reads

    def fetch(self, record_type: str, record_id: str) -> Record:
        """
        Read one record, keeping only the fields the actor may view.

        Raises:
            InvalidArgumentError: Missing record type or identifier
            NotFoundError: No row with that identifier is visible in this scope
            OperationFailedError: The backend read failed
        """
        if not record_type or record_id is None:
            raise InvalidArgumentError(
                "Record type and identifier are required",
                {"record_type": record_type, "record_id": record_id}
            )

        with self._metrics_timer("fetch"):
            viewable = self.resolver.resolve(record_type).viewable
            fetched = self._fetch(record_type, record_id, sorted(viewable))
            if not fetched.found:
                raise NotFoundError(record_type, record_id)
            return fetched.record

    def viewable_fields(self, record: Record) -> FrozenSet[str]:
        return self._resolve(record).viewable

    def creatable_fields(self, record: Record) -> FrozenSet[str]:
        return self._resolve(record).creatable

    def updateable_fields(self, record: Record) -> FrozenSet[str]:
        return self._resolve(record).updateable

    # Internals

    def _resolve(self, record: Record):
        self._require_record(record)
        return self.resolver.resolve(record.record_type)

    def _fetch(self, record_type: str, record_id: str, selection: List[str]) -> FetchResult:
        rows = self._call_backend("query", record_type, self._backend.query, selection, record_type, record_id)
        if not rows:
            return FetchResult()
        return FetchResult(record=rows[0])

    def _check_object_permission(self, record_type: str, permission: PermissionKind) -> None:
        checks: Dict[PermissionKind, Callable[[str], bool]] = {
            PermissionKind.CREATE: self.schema.is_createable,
            PermissionKind.UPDATE: self.schema.is_updateable,
            PermissionKind.DELETE: self.schema.is_deletable,
        }
        if not checks[permission](record_type):
            raise AccessViolationError(
                AccessViolation(
                    kind=ViolationKind.OBJECT_LEVEL,
                    permission=permission,
                    record_type=record_type,
                )
            )

    def _call_backend(self, operation: str, record_type: str, primitive: Callable[..., Any], *args: Any) -> Any:
        try:
            return primitive(*args)
        except Exception as e:
            self.logger.error(
                "Backend operation failed",
                operation=operation,
                record_type=record_type,
                error_type=type(e).__name__
            )
            raise OperationFailedError(operation, record_type, cause=e) from e

    @staticmethod
    def _require_record(record: Optional[Record]) -> None:
        if record is None:
            raise InvalidArgumentError("Record is required")

    @staticmethod
    def _require_fields(fields: Optional[Iterable[str]]) -> List[str]:
        if fields is None or isinstance(fields, str):
            raise InvalidArgumentError("Field names must be a collection of strings")

        names = list(fields)
        if not names:
            raise InvalidArgumentError("At least one field name is required")
        if not all(isinstance(name, str) and name.strip() for name in names):
            raise InvalidArgumentError("Field names must be non-empty strings")
        return names

    @contextmanager
    def _metrics_timer(self, operation: str) -> Iterator[None]:
        if self.metrics is None:
            yield
            return
        with self.metrics.track(self._scope.value, operation):
            yield

    @contextmanager
    def _operation(self, operation: str, record: Optional[Record]) -> Iterator[Dict[str, Any]]:
        """Time a mediated write and record its outcome."""
        record_type = record.record_type if record is not None else None
        details: Dict[str, Any] = {}
        start = time.perf_counter()

        try:
            yield details
        except AccessViolationError as e:
            self.logger.warning(
                "Access denied",
                operation=operation,
                record_type=record_type,
                scope=self._scope.value,
                kind=e.violation.kind.value,
                permission=e.violation.permission.value,
                field=e.violation.field
            )
            if self.metrics is not None:
                self.metrics.record_violation(e.violation.kind.value, e.violation.permission.value)
            self._finish(operation, record_type, AuditOutcome.VIOLATION, start, violation=e.violation.to_dict())
            raise
        except NotFoundError:
            self._finish(operation, record_type, AuditOutcome.NOT_FOUND, start)
            raise
        except OperationFailedError as e:
            self._finish(operation, record_type, AuditOutcome.FAILED, start, failed_operation=e.operation)
            raise
        except InvalidArgumentError:
            self._finish(operation, record_type, AuditOutcome.INVALID, start)
            raise
        else:
            self._finish(operation, record_type, AuditOutcome.SUCCESS, start, **details)
            self.logger.info(
                "Mediated operation completed",
                operation=operation,
                record_type=record_type,
                scope=self._scope.value
            )

    def _finish(
        self,
        operation: str,
        record_type: Optional[str],
        outcome: AuditOutcome,
        start: float,
        **details: Any
    ) -> None:
        if self.metrics is not None:
            self.metrics.record_operation(
                self._scope.value, operation, time.perf_counter() - start, outcome.value
            )
        if self.audit_log is not None:
            self.audit_log.record(operation, record_type, self._scope.value, outcome, **details)

    def __repr__(self) -> str:
        return f"VisibilityScopeExecutor(scope={self._scope.value}, mode={self.settings.mode.value})"
