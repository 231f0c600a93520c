"""
fieldwarden - Field-permission mediation for permissioned data stores.

Routes inserts, updates and deletes through one visibility scope while
enforcing object- and field-level permissions.
"""

from fieldwarden.__version__ import __version__, __title__, __description__
from fieldwarden.access import AccessControlEngine, VisibilityScopeExecutor
from fieldwarden.core import (
    AccessControlConfig,
    AccessViolationError,
    ConfigurationError,
    FieldWardenError,
    InvalidArgumentError,
    NotFoundError,
    OperationFailedError,
)
from fieldwarden.records import Record
from fieldwarden.schema import FieldDescriptor, OperationMode, VisibilityScope

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "AccessControlEngine",
    "VisibilityScopeExecutor",
    "AccessControlConfig",
    "AccessViolationError",
    "ConfigurationError",
    "FieldWardenError",
    "InvalidArgumentError",
    "NotFoundError",
    "OperationFailedError",
    "Record",
    "FieldDescriptor",
    "OperationMode",
    "VisibilityScope",
]
