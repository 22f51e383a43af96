"""Catalog refresh guarded by a time-to-live and a single-flight flag."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings, get_settings
from ..models import CatalogSnapshot, CatalogSyncResult, SyncProgress, now_ms
from ..remote.protocols import CatalogSource
from ..storage.repository import StorageRepository
from ..telemetry import emit_event

logger = logging.getLogger(__name__)


class CatalogSynchronizer:
    """Owns the stored catalog. One refresh at a time per instance."""

    def __init__(
        self,
        repository: StorageRepository,
        source: CatalogSource,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repository = repository
        self.source = source
        self.settings = settings or get_settings()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _is_fresh(self, snapshot: Optional[CatalogSnapshot], ttl_ms: int, now: int) -> bool:
        if snapshot is None or not snapshot.fetch_completed_at:
            return False
        return now - snapshot.fetch_completed_at < ttl_ms

    async def refresh(self, ttl_override: Optional[int] = None) -> CatalogSyncResult:
        """Refresh the catalog unless a refresh is running or the stored copy is fresh.

        `ttl_override` is in seconds; 0 forces an unconditional refresh.
        """
        if self._in_flight:
            logger.info("Catalog refresh already in flight; skipping")
            emit_event("catalog_sync_skipped", reason="in_flight")
            return CatalogSyncResult(skipped=True)

        self._in_flight = True
        try:
            return await self._refresh(ttl_override)
        finally:
            self._in_flight = False

    async def _refresh(self, ttl_override: Optional[int]) -> CatalogSyncResult:
        ttl_seconds = self.settings.catalog_ttl_seconds if ttl_override is None else ttl_override
        started = now_ms()
        existing = await self.repository.load_catalog()

        if self._is_fresh(existing, ttl_seconds * 1000, started):
            logger.info("Catalog is fresh; skipping refresh")
            emit_event("catalog_sync_skipped", reason="fresh")
            return CatalogSyncResult(skipped=True)

        base = existing or CatalogSnapshot()
        await self.repository.save_catalog(
            base.model_copy(
                update={
                    "fetch_started_at": started,
                    "last_attempt_at": started,
                    "last_error": None,
                    "using_cache": False,
                }
            )
        )

        try:
            batch = await self.source.fetch_catalog(on_progress=self._save_progress)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            await self.repository.save_catalog(
                base.model_copy(
                    update={
                        "fetch_started_at": None,
                        "last_attempt_at": started,
                        "last_error": message,
                        "using_cache": True,
                    }
                )
            )
            await self.repository.clear_catalog_progress()
            logger.warning("Catalog refresh failed: %s. Using cached data.", message)
            emit_event("catalog_sync_failed", error=message, cached_items=len(base.items))
            return CatalogSyncResult(skipped=False, error=message, using_cache=True)

        completed = now_ms()
        await self.repository.save_catalog(
            CatalogSnapshot(
                items=batch.items,
                total=batch.total,
                fetch_started_at=started,
                fetch_completed_at=completed,
                last_attempt_at=started,
                last_error=None,
                using_cache=False,
            )
        )
        await self.repository.clear_catalog_progress()
        logger.info("Catalog refreshed: %d items", len(batch.items))
        emit_event("catalog_sync_completed", count=len(batch.items), total=batch.total)
        return CatalogSyncResult(skipped=False, count=len(batch.items))

    async def _save_progress(self, progress: SyncProgress) -> None:
        await self.repository.save_catalog_progress(progress)


__all__ = ["CatalogSynchronizer"]
