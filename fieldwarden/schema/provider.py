"""
Schema Provider - Per-actor schema metadata.

The engine never loads metadata itself. It asks a SchemaProvider for:
- Field descriptors of a record type
- Object-level create/update/delete permissions
"""

from typing import Dict, Iterable, Optional
from abc import ABC, abstractmethod
from pydantic import BaseModel, Field, ConfigDict

from fieldwarden.schema.types import FieldDescriptor, PermissionSnapshot


class SchemaProvider(ABC):
    """
    Base class for schema metadata sources.

    All answers are evaluated for the current actor.
    """

    @abstractmethod
    def describe(self, record_type: str) -> PermissionSnapshot:
        """
        Describe the fields of a record type.

        Args:
            record_type: Record type name

        Returns:
            Freshly captured PermissionSnapshot
        """
        pass

    @abstractmethod
    def is_createable(self, record_type: str) -> bool:
        pass

    @abstractmethod
    def is_updateable(self, record_type: str) -> bool:
        pass

    @abstractmethod
    def is_deletable(self, record_type: str) -> bool:
        pass


class ObjectPermissions(BaseModel):
    """Object-level permissions of one record type."""

    createable: bool = Field(True, description="Actor may insert records")
    updateable: bool = Field(True, description="Actor may update records")
    deletable: bool = Field(True, description="Actor may delete records")

    model_config = ConfigDict(frozen=True)


class InMemorySchemaProvider(SchemaProvider):
    """
    Schema provider backed by plain dictionaries.

    Unknown record types describe as an empty schema and deny every
    object-level permission.

    Example:
        ```python
        schema = InMemorySchemaProvider()
        schema.register(
            "account",
            [
                FieldDescriptor(name="name", viewable=True, creatable=True),
                FieldDescriptor(name="rating", viewable=True),
            ],
        )
        ```
    """

    def __init__(self):
        """Initialize provider."""
        self._fields: Dict[str, Dict[str, FieldDescriptor]] = {}
        self._objects: Dict[str, ObjectPermissions] = {}

    def register(
        self,
        record_type: str,
        fields: Iterable[FieldDescriptor],
        permissions: Optional[ObjectPermissions] = None
    ) -> None:
        """
        Register or replace a record type.

        Args:
            record_type: Record type name
            fields: Field descriptors
            permissions: Object-level permissions (default: all granted)
        """
        self._fields[record_type] = {f.name: f for f in fields}
        self._objects[record_type] = permissions or ObjectPermissions()

    def set_field(self, record_type: str, descriptor: FieldDescriptor) -> None:
        """Add or replace a single field descriptor."""
        self._fields.setdefault(record_type, {})[descriptor.name] = descriptor
        self._objects.setdefault(record_type, ObjectPermissions())

    def describe(self, record_type: str) -> PermissionSnapshot:
        return PermissionSnapshot(record_type, list(self._fields.get(record_type, {}).values()))

    def is_createable(self, record_type: str) -> bool:
        permissions = self._objects.get(record_type)
        return permissions is not None and permissions.createable

    def is_updateable(self, record_type: str) -> bool:
        permissions = self._objects.get(record_type)
        return permissions is not None and permissions.updateable

    def is_deletable(self, record_type: str) -> bool:
        permissions = self._objects.get(record_type)
        return permissions is not None and permissions.deletable
