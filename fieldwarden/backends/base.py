"""
Base Data Backend - Scope-bound storage primitives.

A backend executes query/insert/update/delete under exactly one
row-visibility scope, fixed when it is constructed.
"""

from typing import List, Sequence
from abc import ABC, abstractmethod

from fieldwarden.records import Record
from fieldwarden.schema.types import VisibilityScope


class BackendError(Exception):
    """Native failure raised by a storage backend."""
    pass


class DataBackend(ABC):
    """
    Base class for visibility-scoped storage backends.

    Implementations raise their own native exceptions; the executors wrap
    every failure before it reaches a caller.
    """

    def __init__(self, scope: VisibilityScope):
        """
        Initialize backend.

        Args:
            scope: Row-visibility scope every primitive runs under
        """
        self._scope = VisibilityScope(scope)

    @property
    def scope(self) -> VisibilityScope:
        return self._scope

    @abstractmethod
    def query(self, selection: Sequence[str], record_type: str, record_id: str) -> List[Record]:
        """
        Fetch records by identifier.

        Args:
            selection: Field names to load
            record_type: Record type name
            record_id: Identifier to filter on

        Returns:
            Matching records visible under this backend's scope
        """
        pass

    @abstractmethod
    def insert(self, record: Record) -> Record:
        pass

    @abstractmethod
    def update(self, record: Record) -> Record:
        pass

    @abstractmethod
    def delete(self, record: Record) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(scope={self._scope.value})"
