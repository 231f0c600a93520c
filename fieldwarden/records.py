"""In-memory record payloads handled by the mediation engine."""

from typing import Dict, Any, Optional, Iterator

from fieldwarden.schema.types import normalize_field_name


class Record:
    """
    A record of one record type.

    Holds an optional identifier and a mapping of field values. Field names
    are case-normalized, so ``record["Name"]`` and ``record["name"]`` refer
    to the same value.
    """

    def __init__(
        self,
        record_type: str,
        values: Optional[Dict[str, Any]] = None,
        record_id: Optional[str] = None
    ):
        """
        Initialize record.

        Args:
            record_type: Schema identifier (table/object name)
            values: Field values keyed by field name
            record_id: Identifier of a persisted record
        """
        if not record_type:
            raise ValueError("record_type is required")

        self.record_type = record_type
        self.record_id = record_id
        self._values: Dict[str, Any] = {}
        for name, value in (values or {}).items():
            self[name] = value

    @classmethod
    def blank(cls, record_type: str) -> "Record":
        """Create an empty record of the given type."""
        return cls(record_type)

    def __getitem__(self, name: str) -> Any:
        return self._values[normalize_field_name(name)]

    def __setitem__(self, name: str, value: Any) -> None:
        self._values[normalize_field_name(name)] = value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_field_name(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return (
            self.record_type == other.record_type
            and self.record_id == other.record_id
            and self._values == other._values
        )

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(normalize_field_name(name), default)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return dict(self._values)

    def copy(self) -> "Record":
        return Record(self.record_type, dict(self._values), self.record_id)

    def __repr__(self) -> str:
        return (
            f"Record(record_type={self.record_type}, record_id={self.record_id}, "
            f"fields={list(self._values)})"
        )
