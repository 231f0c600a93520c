"""Visibility-scoped storage backends."""

from fieldwarden.backends.base import BackendError, DataBackend
from fieldwarden.backends.memory import InMemoryDataBackend, RecordStore

__all__ = [
    "BackendError",
    "DataBackend",
    "InMemoryDataBackend",
    "RecordStore",
]
