"""Interfaces the sync components expect from their remote collaborators."""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol

from ..models import AcceptedSubmission, CatalogBatch, SolveResult, SyncProgress


class ItemLookup(Protocol):
    async def fetch_latest_accepted(self, slug: str) -> SolveResult:  # pragma: no cover - protocol
        ...


class RecentAcceptedSource(Protocol):
    async def fetch_recent_accepted(
        self, username: str, limit: int = 20
    ) -> List[AcceptedSubmission]:  # pragma: no cover - protocol
        ...


class CatalogSource(Protocol):
    async def fetch_catalog(
        self, on_progress: Optional[Callable[[SyncProgress], Any]] = None
    ) -> CatalogBatch:  # pragma: no cover - protocol
        ...


__all__ = ["CatalogSource", "ItemLookup", "RecentAcceptedSource"]
