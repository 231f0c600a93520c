"""
Access Control Engine - Facade over the scope executors.

The engine owns one executor per visibility scope, all sharing one settings
object, and forwards every call to the executor of the active scope.
"""

from typing import Dict, FrozenSet, Iterable, Mapping, Optional
from types import MappingProxyType

from fieldwarden.access.audit import AccessAuditLog
from fieldwarden.access.executor import ExecutorSettings, VisibilityScopeExecutor
from fieldwarden.backends.base import DataBackend
from fieldwarden.core.config import AccessControlConfig, coerce_setting
from fieldwarden.core.exceptions import ConfigurationError
from fieldwarden.core.observability import LogLevel, MetricsCollector, StructuredLogger, get_metrics
from fieldwarden.records import Record
from fieldwarden.schema.provider import SchemaProvider
from fieldwarden.schema.types import OperationMode, VisibilityScope

class AccessControlEngine:
    """
    Permission-mediated inserts, updates and deletes.

    Usage:
        engine = AccessControlEngine(
            schema,
            backends,
            scope=VisibilityScope.RESTRICTED,
            mode=OperationMode.BEST_EFFORT,
        )
        saved = engine.insert(Record("account", {"name": "Acme"}), ["name"])

    Only routing lives here; the executors do the mediation.
    """

    def __init__(
        self,
        schema: SchemaProvider,
        backends: Mapping[VisibilityScope, DataBackend],
        scope: VisibilityScope,
        mode: OperationMode = OperationMode.ALL_OR_NONE,
        audit_log: Optional[AccessAuditLog] = None,
        metrics: Optional[MetricsCollector] = None,
        log_level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize engine.

        Args:
            schema: Per-actor schema metadata
            backends: One data backend per visibility scope
            scope: Initially active scope
            mode: Initial field filtering policy
            audit_log: Audit trail shared by all executors
            metrics: Metrics collector shared by all executors
            log_level: Logging level for the engine and its executors

        Raises:
            ConfigurationError: Invalid scope or mode, or a scope without a backend
        """
        scope = coerce_setting(VisibilityScope, scope, "scope")
        mode = coerce_setting(OperationMode, mode, "mode")

        missing = [s.value for s in VisibilityScope if s not in backends]
        if missing:
            raise ConfigurationError(
                f"No backend configured for scopes: {missing}",
                {"missing": missing}
            )

        self._settings = ExecutorSettings(mode)
        self.audit_log = audit_log
        self.metrics = metrics
        self.logger = StructuredLogger("engine", log_level)

        self._executors: Dict[VisibilityScope, VisibilityScopeExecutor] = {
            s: VisibilityScopeExecutor(
                s,
                backends[s],
                schema,
                settings=self._settings,
                audit_log=audit_log,
                metrics=metrics,
                log_level=log_level,
            )
            for s in VisibilityScope
        }
        self._scope = scope

    @classmethod
    def from_config(
        cls,
        config: AccessControlConfig,
        schema: SchemaProvider,
        backends: Mapping[VisibilityScope, DataBackend],
        metrics: Optional[MetricsCollector] = None
    ) -> "AccessControlEngine":
        """
        Build an engine from configuration.

        Args:
            config: Engine configuration
            schema: Per-actor schema metadata
            backends: One data backend per visibility scope
            metrics: Metrics collector (default: the process-wide collector, or
                a disabled one when metrics are turned off)
        """
        log_level = LogLevel(config.log_level)
        audit_log = None
        if config.audit_enabled:
            audit_log = AccessAuditLog(config.audit_max_records, log_level=log_level)
        if metrics is None:
            metrics = get_metrics() if config.metrics_enabled else MetricsCollector(enabled=False)

        return cls(
            schema,
            backends,
            scope=config.scope,
            mode=config.mode,
            audit_log=audit_log,
            metrics=metrics,
            log_level=log_level,
        )

    # Configuration

    @property
    def scope(self) -> VisibilityScope:
        return self._scope

    @property
    def mode(self) -> OperationMode:
        return self._settings.mode

    @property
    def executors(self) -> Mapping[VisibilityScope, VisibilityScopeExecutor]:
        return MappingProxyType(self._executors)

    @property
    def executor(self) -> VisibilityScopeExecutor:
        """Executor of the active scope."""
        return self._executors[self._scope]

    def configure_scope(self, scope: VisibilityScope) -> None:
        """
        Select the visibility scope for subsequent calls.

        Raises:
            ConfigurationError: If scope is unset or unrecognized; the
                previous scope stays active
        """
        scope = coerce_setting(VisibilityScope, scope, "scope")
        self._scope = scope
        self.logger.info("Scope configured", scope=scope.value)

    def configure_mode(self, mode: OperationMode) -> None:
        """
        Set the field filtering policy for every executor.

        Raises:
            ConfigurationError: If mode is unset or unrecognized; the
                previous mode stays in effect
        """
        mode = coerce_setting(OperationMode, mode, "mode")
        self._settings.mode = mode
        self.logger.info("Mode configured", mode=mode.value)

    # Mediated writes

    def insert(self, record: Record, fields_to_set: Iterable[str]) -> Record:
        return self.executor.insert(record, fields_to_set)

    def update(self, record: Record, fields_to_update: Iterable[str]) -> Record:
        return self.executor.update(record, fields_to_update)

    def delete(self, record: Record) -> None:
        return self.executor.delete(record)

    # Reads

    def fetch(self, record_type: str, record_id: str) -> Record:
        return self.executor.fetch(record_type, record_id)

    def viewable_fields(self, record: Record) -> FrozenSet[str]:
        return self.executor.viewable_fields(record)

    def updateable_fields(self, record: Record) -> FrozenSet[str]:
        return self.executor.updateable_fields(record)

    def creatable_fields(self, record: Record) -> FrozenSet[str]:
        return self.executor.creatable_fields(record)

    def __repr__(self) -> str:
        return f"AccessControlEngine(scope={self._scope.value}, mode={self._settings.mode.value})"
