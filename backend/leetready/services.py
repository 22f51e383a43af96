"""Process-wide service singletons handed to the HTTP layer as dependencies."""

from __future__ import annotations

import logging
from typing import Optional

from .config import get_settings
from .db.session import create_tables
from .remote.client import LeetCodeClient
from .storage.repository import StorageRepository
from .storage.store import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore
from .sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

_store: Optional[KeyValueStore] = None
_coordinator: Optional[SyncCoordinator] = None


def _build_store() -> KeyValueStore:
    settings = get_settings()
    if settings.database_url:
        create_tables()
        logger.info("Using SQL key-value store")
        return SqlKeyValueStore()
    logger.warning("LEETREADY_DATABASE_URL not set; state will not survive a restart")
    return InMemoryKeyValueStore()


def get_store() -> KeyValueStore:
    global _store
    if _store is None:
        _store = _build_store()
    return _store


def get_repository() -> StorageRepository:
    return StorageRepository(get_store())


def get_coordinator() -> SyncCoordinator:
    global _coordinator
    if _coordinator is None:
        settings = get_settings()
        _coordinator = SyncCoordinator(get_repository(), LeetCodeClient(settings), settings)
    return _coordinator


def cancel_running_scan() -> bool:
    """Cancel the scan the coordinator is running, if there is one."""
    if _coordinator is None:
        return False
    return _coordinator.cancel_scan()


async def shutdown_services() -> None:
    global _store, _coordinator
    if cancel_running_scan():
        logger.info("Cancelled running full scan during shutdown")
    if _coordinator is not None:
        await _coordinator.client.aclose()
    _store = None
    _coordinator = None


__all__ = [
    "cancel_running_scan",
    "get_coordinator",
    "get_repository",
    "get_store",
    "shutdown_services",
]
