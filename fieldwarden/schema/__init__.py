"""Schema metadata types and providers."""

from fieldwarden.schema.types import (
    AccessViolation,
    FieldDescriptor,
    OperationMode,
    PermissionKind,
    PermissionSnapshot,
    ViolationKind,
    VisibilityScope,
    normalize_field_name,
)
from fieldwarden.schema.provider import (
    InMemorySchemaProvider,
    ObjectPermissions,
    SchemaProvider,
)

__all__ = [
    "AccessViolation",
    "FieldDescriptor",
    "OperationMode",
    "PermissionKind",
    "PermissionSnapshot",
    "ViolationKind",
    "VisibilityScope",
    "normalize_field_name",
    "InMemorySchemaProvider",
    "ObjectPermissions",
    "SchemaProvider",
]
