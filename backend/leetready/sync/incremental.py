"""Cheap per-activation reconciliation against the recent-accepted feed."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..config import Settings, get_settings
from ..models import AcceptedSubmission, CacheEntry, IncrementalResult, SubmissionCache, now_ms
from ..remote.protocols import RecentAcceptedSource
from ..storage.repository import StorageRepository
from ..telemetry import emit_event

logger = logging.getLogger(__name__)


class ChronologyError(ValueError):
    """The recent-accepted feed was not ordered newest first."""


def _parse_timestamp(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ChronologyError(f"Invalid timestamp: {value!r}") from exc


def validate_chronological_order(
    submissions: Sequence[AcceptedSubmission],
    label: str = "submissions",
) -> None:
    previous: Optional[int] = None
    for index, submission in enumerate(submissions):
        current = _parse_timestamp(submission.timestamp)
        if previous is not None and current > previous:
            raise ChronologyError(
                f"Chronology violation in {label} at index {index}: {current} > {previous}"
            )
        previous = current


def reconcile_recent(
    recent: Sequence[AcceptedSubmission],
    cache: SubmissionCache,
    *,
    now: Optional[int] = None,
) -> IncrementalResult:
    """Fold the recent feed into `cache` and decide whether a gap is visible.

    Pure: the caller persists the returned cache.
    """
    if not recent:
        return IncrementalResult(gap_detected=False, new_count=0, cache=cache)

    validate_chronological_order(recent, "recent accepted submissions")

    stamp = now if now is not None else now_ms()
    entries = dict(cache.entries)
    cache_was_empty = not entries
    overlap_found = False
    new_count = 0

    for submission in recent:
        timestamp = _parse_timestamp(submission.timestamp)
        existing = entries.get(submission.slug)

        if existing is not None and existing.solved:
            overlap_found = True
            stored = existing.latest_accepted_timestamp
            if stored is None or timestamp > stored:
                entries[submission.slug] = CacheEntry(
                    solved=True, latest_accepted_timestamp=timestamp, checked_at=stamp
                )
                new_count += 1
        else:
            entries[submission.slug] = CacheEntry(
                solved=True, latest_accepted_timestamp=timestamp, checked_at=stamp
            )
            new_count += 1

    gap_detected = not cache_was_empty and not overlap_found
    if gap_detected:
        status = "stale"
    elif cache.status in ("empty", "building"):
        # A scan in progress still owns the cache until it finishes.
        status = cache.status
    else:
        status = "valid"

    updated = SubmissionCache(
        entries=entries,
        status=status,
        last_full_scan_at=cache.last_full_scan_at,
        last_incremental_at=stamp,
        last_error=None,
    )
    return IncrementalResult(gap_detected=gap_detected, new_count=new_count, cache=updated)


class IncrementalReconciler:
    def __init__(
        self,
        repository: StorageRepository,
        source: RecentAcceptedSource,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repository = repository
        self.source = source
        self.settings = settings or get_settings()

    async def reconcile(
        self,
        username: str,
        existing: Optional[SubmissionCache] = None,
    ) -> IncrementalResult:
        if not username:
            logger.info("No username; skipping incremental reconciliation")
            cache = existing if existing is not None else await self.repository.load_cache_or_empty()
            return IncrementalResult(gap_detected=False, new_count=0, cache=cache)

        recent = await self.source.fetch_recent_accepted(username, self.settings.recent_accepted_limit)
        logger.debug("Fetched %d recent accepted submissions for %s", len(recent), username)

        if not recent:
            cache = existing if existing is not None else await self.repository.load_cache_or_empty()
            return reconcile_recent(recent, cache)

        validate_chronological_order(recent, "recent accepted submissions")
        outcome: List[IncrementalResult] = []

        def _apply(current: SubmissionCache) -> SubmissionCache:
            # `existing` only seeds a store that has never held a cache.
            base = current
            if existing is not None and not current.entries and current.status == "empty":
                base = existing
            result = reconcile_recent(recent, base)
            outcome.append(result)
            return result.cache

        await self.repository.update_cache(_apply)
        result = outcome[-1]
        emit_event(
            "incremental_reconciled",
            new_count=result.new_count,
            gap_detected=result.gap_detected,
            cache_status=result.cache.status,
        )
        if result.gap_detected:
            logger.info("Gap detected; full scan required (%d entries cached)", len(result.cache.entries))
            emit_event("cache_gap_detected", cached_entries=len(result.cache.entries))
        return result


async def reconcile_incremental(
    repository: StorageRepository,
    source: RecentAcceptedSource,
    username: str,
    existing: Optional[SubmissionCache] = None,
    *,
    settings: Optional[Settings] = None,
) -> IncrementalResult:
    return await IncrementalReconciler(repository, source, settings).reconcile(username, existing)


__all__ = [
    "ChronologyError",
    "IncrementalReconciler",
    "reconcile_incremental",
    "reconcile_recent",
    "validate_chronological_order",
]
