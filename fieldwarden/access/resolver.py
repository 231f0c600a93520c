"""Field permission resolution."""

from typing import Optional, FrozenSet
from dataclasses import dataclass

from fieldwarden.schema.provider import SchemaProvider
from fieldwarden.schema.types import PermissionSnapshot


@dataclass(frozen=True)
class FieldPermissionSets:
    """Field names the actor may view, create and update."""

    viewable: FrozenSet[str] = frozenset()
    creatable: FrozenSet[str] = frozenset()
    updateable: FrozenSet[str] = frozenset()


class FieldPermissionResolver:
    """
    Partitions a record type's fields by permission.

    The three sets are computed independently, so a field may appear in any
    combination of them. A pre-fetched snapshot can be passed to avoid
    describing the same type twice within one operation.
    """

    def __init__(self, schema: SchemaProvider):
        """
        Initialize resolver.

        Args:
            schema: Source of per-actor field descriptors
        """
        self.schema = schema

    def snapshot(self, record_type: str) -> PermissionSnapshot:
        """Capture the current field descriptors of a record type."""
        return self.schema.describe(record_type)

    def resolve(
        self,
        record_type: str,
        field_map: Optional[PermissionSnapshot] = None
    ) -> FieldPermissionSets:
        """
        Resolve viewable, creatable and updateable field names.

        Args:
            record_type: Record type name
            field_map: Snapshot to reuse (default: describe the type now)

        Returns:
            FieldPermissionSets for the current actor
        """
        if field_map is None:
            field_map = self.snapshot(record_type)

        descriptors = list(field_map.values())
        return FieldPermissionSets(
            viewable=frozenset(d.name for d in descriptors if d.viewable),
            creatable=frozenset(d.name for d in descriptors if d.creatable),
            updateable=frozenset(d.name for d in descriptors if d.updateable),
        )

    def viewable(self, record_type: str, field_map: Optional[PermissionSnapshot] = None) -> FrozenSet[str]:
        return self.resolve(record_type, field_map).viewable

    def creatable(self, record_type: str, field_map: Optional[PermissionSnapshot] = None) -> FrozenSet[str]:
        return self.resolve(record_type, field_map).creatable

    def updateable(self, record_type: str, field_map: Optional[PermissionSnapshot] = None) -> FrozenSet[str]:
        return self.resolve(record_type, field_map).updateable
