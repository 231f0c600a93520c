"""
Access - Field-permission mediation.

Example:
    ```python
    from fieldwarden.access import AccessControlEngine
    from fieldwarden.backends import InMemoryDataBackend, RecordStore
    from fieldwarden.schema import InMemorySchemaProvider, OperationMode, VisibilityScope

    store = RecordStore()
    backends = {s: InMemoryDataBackend(s, store) for s in VisibilityScope}
    engine = AccessControlEngine(
        schema,
        backends,
        scope=VisibilityScope.RESTRICTED,
        mode=OperationMode.ALL_OR_NONE,
    )

    saved = engine.insert(record, ["name", "industry"])
    ```
"""

from fieldwarden.access.audit import AccessAuditLog, AuditOutcome, AuditRecord
from fieldwarden.access.engine import AccessControlEngine
from fieldwarden.access.executor import ExecutorSettings, FetchResult, VisibilityScopeExecutor
from fieldwarden.access.policy import PermissionPolicy, PolicyDecision
from fieldwarden.access.resolver import FieldPermissionResolver, FieldPermissionSets

__all__ = [
    # Audit
    "AccessAuditLog",
    "AuditOutcome",
    "AuditRecord",

    # Engine
    "AccessControlEngine",

    # Executors
    "ExecutorSettings",
    "FetchResult",
    "VisibilityScopeExecutor",

    # Policy and resolution
    "PermissionPolicy",
    "PolicyDecision",
    "FieldPermissionResolver",
    "FieldPermissionSets",
]
