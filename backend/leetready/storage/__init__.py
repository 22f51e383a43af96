"""Durable key-value storage for the catalog and the submission cache."""

from .keys import STORAGE_VERSION
from .migration import MigrationResult, migrate_storage_if_needed
from .repository import StorageRepository
from .store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SqlKeyValueStore,
    StorageChange,
)

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "MigrationResult",
    "STORAGE_VERSION",
    "SqlKeyValueStore",
    "StorageChange",
    "StorageRepository",
    "migrate_storage_if_needed",
]
