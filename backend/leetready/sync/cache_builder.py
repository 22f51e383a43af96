"""Full scan that repairs a stale or empty submission cache.

Per-item lookups run strictly one after another with a fixed delay between
them. The cache is written as `building` before the first remote call and
checkpointed every few items, so a process torn down mid-scan leaves a cache
that is honest about being incomplete.

Every write merges the entries this scan produced into the stored cache rather
than replacing it, so solves recorded by a reconciliation running alongside the
scan survive its checkpoints and final write.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol

from ..config import Settings, get_settings
from ..models import CacheEntry, Item, SubmissionCache, SyncProgress, now_ms
from ..remote.protocols import ItemLookup
from ..storage.repository import StorageRepository
from ..telemetry import emit_event
from .scan_strategy import ScanStrategy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SyncProgress], Any]


class CancelSignal(Protocol):
    def is_set(self) -> bool:  # pragma: no cover - protocol definition
        ...


def _unsolved_entry() -> CacheEntry:
    return CacheEntry(solved=False, latest_accepted_timestamp=None, checked_at=now_ms())


def _supersedes(stored: CacheEntry, scanned: CacheEntry) -> bool:
    if not stored.solved:
        return False
    if not scanned.solved:
        return True
    return (stored.latest_accepted_timestamp or 0) > (scanned.latest_accepted_timestamp or 0)


def merge_scan_entries(
    current: SubmissionCache,
    scanned: Mapping[str, CacheEntry],
    **fields: Any,
) -> SubmissionCache:
    """Fold scan results into `current`; a stored solve that is newer always wins."""
    entries = dict(current.entries)
    for slug, entry in scanned.items():
        stored = entries.get(slug)
        if stored is not None and _supersedes(stored, entry):
            continue
        entries[slug] = entry
    return current.model_copy(update={"entries": entries, **fields})


class SubmissionCacheBuilder:
    def __init__(
        self,
        repository: StorageRepository,
        lookup: ItemLookup,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repository = repository
        self.lookup = lookup
        self.settings = settings or get_settings()

    async def _persist(self, scanned: Mapping[str, CacheEntry], **fields: Any) -> SubmissionCache:
        entries = dict(scanned)
        return await self.repository.update_cache(lambda current: merge_scan_entries(current, entries, **fields))

    async def _report(self, progress: SyncProgress, on_progress: Optional[ProgressCallback]) -> None:
        if on_progress is not None:
            outcome = on_progress(progress)
            if asyncio.iscoroutine(outcome):
                await outcome
        await self.repository.save_scan_progress(progress)

    async def build(
        self,
        items: Iterable[Item],
        strategy: ScanStrategy,
        existing: SubmissionCache,
        on_progress: Optional[ProgressCallback] = None,
        cancel_signal: Optional[CancelSignal] = None,
    ) -> SubmissionCache:
        plan = strategy.partition(items, existing.entries)

        if plan.is_empty:
            logger.info("Nothing to scan; cache already covers the catalog")
            return await self._persist(
                existing.entries, status="valid", last_full_scan_at=now_ms(), last_error=None
            )

        total = len(plan.to_query)
        logger.info(
            "Scan starting: %d to query, %d to mark unsolved (strategy=%s)",
            total,
            len(plan.to_mark_unsolved),
            strategy.name,
        )
        emit_event(
            "cache_scan_started",
            strategy=strategy.name,
            to_query=total,
            to_mark_unsolved=len(plan.to_mark_unsolved),
        )

        produced: Dict[str, CacheEntry] = {item.slug: _unsolved_entry() for item in plan.to_mark_unsolved}

        if total == 0:
            completed = await self._persist(
                {**existing.entries, **produced}, status="valid", last_full_scan_at=now_ms(), last_error=None
            )
            await self.repository.clear_scan_progress()
            emit_event("cache_scan_completed", queried=0, marked_unsolved=len(produced))
            return completed

        await self._persist({**existing.entries, **produced}, status="building", last_error=None)

        fetched = 0
        failures = 0
        cancelled = False
        await self._report(SyncProgress(fetched=0, total=total, phase="scanning"), on_progress)

        interval = self.settings.scan_checkpoint_interval
        delay = self.settings.scan_throttle_ms / 1000

        for index, item in enumerate(plan.to_query):
            if cancel_signal is not None and cancel_signal.is_set():
                cancelled = True
                logger.info("Scan cancelled after %d/%d lookups", fetched, total)
                break

            try:
                result = await self.lookup.fetch_latest_accepted(item.slug)
                produced[item.slug] = CacheEntry(
                    solved=result.solved,
                    latest_accepted_timestamp=result.latest_accepted_timestamp,
                    checked_at=now_ms(),
                )
            except Exception as exc:  # noqa: BLE001
                failures += 1
                logger.warning("Lookup failed for %s; recording as unsolved: %s", item.slug, exc)
                emit_event("cache_item_lookup_failed", slug=item.slug, error=str(exc))
                produced[item.slug] = _unsolved_entry()

            fetched += 1
            await self._report(SyncProgress(fetched=fetched, total=total, phase="scanning"), on_progress)

            if (index + 1) % interval == 0:
                await self._persist(produced, status="building")
                logger.debug("Checkpoint at %d/%d", fetched, total)
                emit_event("cache_scan_checkpoint", fetched=fetched, total=total)

            if index < total - 1 and delay > 0:
                await asyncio.sleep(delay)

        if cancelled:
            completed = await self._persist(produced, status=existing.status)
        else:
            completed = await self._persist(produced, status="valid", last_full_scan_at=now_ms(), last_error=None)
        await self.repository.clear_scan_progress()

        emit_event(
            "cache_scan_cancelled" if cancelled else "cache_scan_completed",
            queried=fetched,
            total=total,
            failures=failures,
            marked_unsolved=len(plan.to_mark_unsolved),
        )
        logger.info(
            "Scan %s: %d/%d queried, %d failed, %d marked unsolved",
            "cancelled" if cancelled else "complete",
            fetched,
            total,
            failures,
            len(plan.to_mark_unsolved),
        )
        return completed


async def build_cache(
    repository: StorageRepository,
    lookup: ItemLookup,
    items: Iterable[Item],
    strategy: ScanStrategy,
    existing: SubmissionCache,
    on_progress: Optional[ProgressCallback] = None,
    cancel_signal: Optional[CancelSignal] = None,
    *,
    settings: Optional[Settings] = None,
) -> SubmissionCache:
    builder = SubmissionCacheBuilder(repository, lookup, settings)
    return await builder.build(items, strategy, existing, on_progress, cancel_signal)


__all__ = ["CancelSignal", "SubmissionCacheBuilder", "build_cache", "merge_scan_entries"]
