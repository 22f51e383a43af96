"""Startup check that drops stored blobs written under an older schema version."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from ..telemetry import emit_event
from .keys import STORAGE_VERSION, VERSION_KEY, VERSIONED_KEYS
from .store import KeyValueStore

logger = logging.getLogger(__name__)


class MigrationResult(BaseModel):
    migrated: bool
    from_version: Optional[int] = None
    to_version: Optional[int] = None


async def migrate_storage_if_needed(
    store: KeyValueStore,
    *,
    version: int = STORAGE_VERSION,
) -> MigrationResult:
    current = await store.get(VERSION_KEY)
    if current == version:
        return MigrationResult(migrated=False)

    logger.info(
        "Storage migration: clearing cached blobs (version %s -> %s)",
        current if current is not None else "none",
        version,
    )
    await store.remove(list(VERSIONED_KEYS))
    await store.set(VERSION_KEY, version)
    emit_event("storage_migrated", from_version=current, to_version=version)
    return MigrationResult(migrated=True, from_version=current, to_version=version)


__all__ = ["MigrationResult", "migrate_storage_if_needed"]
