"""One activation of the sync engine: catalog and reconciliation, then repair if needed."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from ..config import Settings, get_settings
from ..models import ActivationResult, IncrementalResult, SubmissionCache, UserStatus
from ..remote.client import LeetCodeClient
from ..storage.migration import migrate_storage_if_needed
from ..storage.repository import StorageRepository
from ..telemetry import emit_event
from .cache_builder import CancelSignal, ProgressCallback, SubmissionCacheBuilder
from .catalog_sync import CatalogSynchronizer
from .incremental import IncrementalReconciler
from .scan_strategy import ScanStrategy, get_strategy

logger = logging.getLogger(__name__)

_REPAIR_STATUSES = {"empty", "stale", "building"}


class _EitherSignal:
    def __init__(self, own: asyncio.Event, caller: Optional[CancelSignal]) -> None:
        self.own = own
        self.caller = caller

    def is_set(self) -> bool:
        return self.own.is_set() or (self.caller is not None and self.caller.is_set())


class SyncCoordinator:
    def __init__(
        self,
        repository: StorageRepository,
        client: LeetCodeClient,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repository = repository
        self.client = client
        self.settings = settings or get_settings()
        self.catalog = CatalogSynchronizer(repository, client, self.settings)
        self.reconciler = IncrementalReconciler(repository, client, self.settings)
        self.builder = SubmissionCacheBuilder(repository, client, self.settings)
        self._scan_lock = asyncio.Lock()
        self._scan_cancel: Optional[asyncio.Event] = None

    @property
    def scan_running(self) -> bool:
        return self._scan_cancel is not None

    def cancel_scan(self) -> bool:
        """Ask the scan currently holding the scan lock to stop after its current item."""
        if self._scan_cancel is None or self._scan_cancel.is_set():
            return False
        self._scan_cancel.set()
        logger.info("Full scan cancellation requested")
        return True

    async def refresh_user_status(self) -> Optional[UserStatus]:
        """Fetch the signed-in user, falling back to the stored copy on failure."""
        try:
            status = await self.client.fetch_user_status()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to fetch user status: %s. Using cached data.", exc)
            return await self.repository.load_user_status()
        await self.repository.save_user_status(status)
        return status

    async def _reconcile(
        self, username: str, existing: SubmissionCache
    ) -> Tuple[Optional[IncrementalResult], Optional[str]]:
        try:
            return await self.reconciler.reconcile(username, existing), None
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            logger.error("Incremental reconciliation failed: %s", message)
            emit_event("incremental_failed", error=message, kind=type(exc).__name__)
            return None, message

    async def _scan_stored(
        self,
        strategy: Optional[ScanStrategy],
        on_progress: Optional[ProgressCallback],
        cancel_signal: Optional[CancelSignal],
    ) -> Tuple[SubmissionCache, bool]:
        async with self._scan_lock:
            snapshot = await self.repository.load_catalog()
            existing = await self.repository.load_cache_or_empty()
            if snapshot is None or not snapshot.items:
                logger.info("No catalog stored yet; full scan deferred")
                return existing, False
            chosen = strategy or get_strategy(self.settings.scan_strategy)
            self._scan_cancel = asyncio.Event()
            try:
                built = await self.builder.build(
                    snapshot.items,
                    chosen,
                    existing,
                    on_progress,
                    _EitherSignal(self._scan_cancel, cancel_signal),
                )
            finally:
                self._scan_cancel = None
            return built, True

    async def run_full_scan(
        self,
        strategy: Optional[ScanStrategy] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_signal: Optional[CancelSignal] = None,
    ) -> SubmissionCache:
        """Scan the stored catalog into the stored cache. Scans never overlap."""
        cache, _ = await self._scan_stored(strategy, on_progress, cancel_signal)
        return cache

    async def activate(
        self,
        username: str,
        *,
        force_catalog: bool = False,
        strategy: Optional[ScanStrategy] = None,
        cancel_signal: Optional[CancelSignal] = None,
    ) -> ActivationResult:
        await migrate_storage_if_needed(self.repository.store)
        before = await self.repository.load_cache_or_empty()

        catalog_result, (incremental, incremental_error) = await asyncio.gather(
            self.catalog.refresh(ttl_override=0 if force_catalog else None),
            self._reconcile(username, before),
        )
        if incremental_error is not None:
            cache = await self.repository.record_cache_error(incremental_error)
            gap_detected, new_count = False, 0
        elif incremental is not None:
            cache = incremental.cache
            gap_detected, new_count = incremental.gap_detected, incremental.new_count
        else:  # pragma: no cover - _reconcile always returns one side
            cache = before
            gap_detected, new_count = False, 0

        needs_scan = gap_detected or cache.status in _REPAIR_STATUSES or before.status == "building"
        full_scan_ran = False
        if needs_scan:
            logger.info(
                "Full scan scheduled (gap=%s, status=%s, previous=%s)",
                gap_detected,
                cache.status,
                before.status,
            )
            cache, full_scan_ran = await self._scan_stored(strategy, None, cancel_signal)

        return ActivationResult(
            catalog=catalog_result,
            gap_detected=gap_detected,
            new_count=new_count,
            full_scan_ran=full_scan_ran,
            cache_status=cache.status,
            incremental_error=incremental_error,
        )


__all__ = ["SyncCoordinator"]
