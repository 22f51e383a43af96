"""Sync endpoints used by the dashboard to drive and observe the engine."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from .models import ActivationResult, CacheStatus, CatalogSyncResult, SubmissionCache
from .remote.client import RemoteFetchError
from .services import get_coordinator, get_repository
from .storage.repository import StorageRepository
from .sync.coordinator import SyncCoordinator
from .sync.incremental import ChronologyError
from .sync.scan_strategy import get_strategy

router = APIRouter(prefix="/api/sync", tags=["sync"])
logger = logging.getLogger(__name__)


class IncrementalRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)


class FullScanRequest(BaseModel):
    strategy: Optional[Literal["targeted", "eager"]] = None


class ActivateRequest(BaseModel):
    username: Optional[str] = Field(default=None, max_length=64)
    force_catalog: bool = False
    strategy: Optional[Literal["targeted", "eager"]] = None


class CacheSummary(BaseModel):
    status: CacheStatus
    entry_count: int
    solved_count: int
    last_full_scan_at: Optional[int] = None
    last_incremental_at: Optional[int] = None
    last_error: Optional[str] = None


class IncrementalResponse(BaseModel):
    gap_detected: bool
    new_count: int
    cache: CacheSummary


class SyncStatusResponse(BaseModel):
    cache: CacheSummary
    catalog_items: int
    catalog_fetched_at: Optional[int] = None
    catalog_error: Optional[str] = None
    catalog_using_cache: bool = False
    catalog_refresh_in_flight: bool = False
    scan_running: bool = False
    progress: Dict[str, Any] = Field(default_factory=dict)


def _summarize(cache: SubmissionCache) -> CacheSummary:
    return CacheSummary(
        status=cache.status,
        entry_count=len(cache.entries),
        solved_count=sum(1 for entry in cache.entries.values() if entry.solved),
        last_full_scan_at=cache.last_full_scan_at,
        last_incremental_at=cache.last_incremental_at,
        last_error=cache.last_error,
    )


@router.post("/catalog/refresh", response_model=CatalogSyncResult)
async def refresh_catalog(
    force: bool = Query(default=False),
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> CatalogSyncResult:
    return await coordinator.catalog.refresh(ttl_override=0 if force else None)


@router.post("/incremental", response_model=IncrementalResponse)
async def reconcile(
    payload: IncrementalRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> IncrementalResponse:
    try:
        result = await coordinator.reconciler.reconcile(payload.username.strip())
    except ChronologyError as exc:
        logger.error("Recent accepted feed violated ordering: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except RemoteFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return IncrementalResponse(
        gap_detected=result.gap_detected,
        new_count=result.new_count,
        cache=_summarize(result.cache),
    )


@router.post("/full-scan", response_model=CacheSummary)
async def full_scan(
    payload: FullScanRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> CacheSummary:
    strategy = get_strategy(payload.strategy) if payload.strategy else None
    started = perf_counter()
    cache = await coordinator.run_full_scan(strategy)
    logger.info("Full scan request finished in %.1fs (status=%s)", perf_counter() - started, cache.status)
    return _summarize(cache)


@router.post("/full-scan/cancel")
async def cancel_full_scan(coordinator: SyncCoordinator = Depends(get_coordinator)) -> Dict[str, bool]:
    return {"cancelled": coordinator.cancel_scan()}


@router.post("/activate", response_model=ActivationResult)
async def activate(
    payload: ActivateRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> ActivationResult:
    username = (payload.username or "").strip()
    if not username:
        user = await coordinator.refresh_user_status()
        if user is None or not user.is_signed_in or not user.username:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No signed-in user available.")
        username = user.username
    strategy = get_strategy(payload.strategy) if payload.strategy else None
    return await coordinator.activate(
        username,
        force_catalog=payload.force_catalog,
        strategy=strategy,
    )


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    repository: StorageRepository = Depends(get_repository),
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> SyncStatusResponse:
    cache = await repository.load_cache_or_empty()
    catalog = await repository.load_catalog()
    return SyncStatusResponse(
        cache=_summarize(cache),
        catalog_items=len(catalog.items) if catalog else 0,
        catalog_fetched_at=catalog.fetch_completed_at if catalog else None,
        catalog_error=catalog.last_error if catalog else None,
        catalog_using_cache=catalog.using_cache if catalog else False,
        catalog_refresh_in_flight=coordinator.catalog.in_flight,
        scan_running=coordinator.scan_running,
        progress=await repository.load_progress(),
    )


__all__ = ["router"]
