"""
Schema and permission data model.

Defines the value types shared by the resolver, the policy and the executors:
- Field descriptors and permission snapshots
- Visibility scopes and operation modes
- Access violations
"""

from typing import Dict, Any, Optional, Iterable, Iterator, Mapping, Union
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator


def normalize_field_name(name: str) -> str:
    """Field names are case-insensitive; lower case is the canonical form."""
    return name.strip().lower()


class VisibilityScope(str, Enum):
    """Row-visibility rule set a storage call executes under."""
    RESTRICTED = "restricted"  # Only rows shared with the actor
    UNRESTRICTED = "unrestricted"  # Every row, regardless of sharing
    INHERITED = "inherited"  # Whatever the calling context enforces


class OperationMode(str, Enum):
    """Strictness policy for field filtering."""
    ALL_OR_NONE = "all_or_none"  # Reject on the first disallowed field
    BEST_EFFORT = "best_effort"  # Drop disallowed fields silently


class PermissionKind(str, Enum):
    """Permission a mediated write requires."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ViolationKind(str, Enum):
    """Level at which a permission was missing."""
    OBJECT_LEVEL = "object_level"
    FIELD_LEVEL = "field_level"


class FieldDescriptor(BaseModel):
    """Per-actor permissions for one field."""

    name: str = Field(..., min_length=1, description="Field name (case-normalized)")
    viewable: bool = Field(False, description="Actor may read the field")
    creatable: bool = Field(False, description="Actor may set the field on insert")
    updateable: bool = Field(False, description="Actor may change the field on update")

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v):
        return normalize_field_name(v)


class AccessViolation(BaseModel):
    """Why a mediated write was rejected."""

    kind: ViolationKind
    permission: PermissionKind
    record_type: str
    field: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "permission": self.permission.value,
            "record_type": self.record_type,
            "field": self.field,
        }


class PermissionSnapshot(Mapping[str, FieldDescriptor]):
    """
    Read-only view of a record type's field descriptors.

    A snapshot is captured once at the start of a mediated call and discarded
    when the call ends. Keys are case-normalized field names; lookups accept
    any casing.
    """

    def __init__(
        self,
        record_type: str,
        descriptors: Union[Iterable[FieldDescriptor], Mapping[str, FieldDescriptor]] = ()
    ):
        if isinstance(descriptors, Mapping):
            descriptors = descriptors.values()

        fields: Dict[str, FieldDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in fields:
                raise ValueError(
                    f"Duplicate field '{descriptor.name}' in schema of '{record_type}'"
                )
            fields[descriptor.name] = descriptor

        self._record_type = record_type
        self._fields = fields

    @property
    def record_type(self) -> str:
        return self._record_type

    def __getitem__(self, name: str) -> FieldDescriptor:
        return self._fields[normalize_field_name(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_field_name(name) in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"PermissionSnapshot(record_type={self._record_type}, fields={list(self._fields)})"
