"""Typed access to the catalog, cache and user blobs kept in a key-value store."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..models import CatalogSnapshot, SubmissionCache, SyncProgress, UserStatus
from .keys import (
    CATALOG_KEY,
    CATALOG_PROGRESS_KEY,
    SUBMISSION_CACHE_KEY,
    SUBMISSION_PROGRESS_KEY,
    USER_STATUS_KEY,
)
from .store import KeyValueStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class StorageRepository:
    """Single persistence layer through which sync components read and write state."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def _load(self, key: str, model: Type[ModelT]) -> Optional[ModelT]:
        payload = await self.store.get(key)
        if payload is None:
            return None
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Discarding invalid %s blob: %s", key, exc)
            return None

    async def load_catalog(self) -> Optional[CatalogSnapshot]:
        return await self._load(CATALOG_KEY, CatalogSnapshot)

    async def save_catalog(self, snapshot: CatalogSnapshot) -> None:
        await self.store.set(CATALOG_KEY, snapshot.model_dump(mode="json"))

    async def load_cache(self) -> Optional[SubmissionCache]:
        return await self._load(SUBMISSION_CACHE_KEY, SubmissionCache)

    async def load_cache_or_empty(self) -> SubmissionCache:
        cache = await self.load_cache()
        return cache if cache is not None else SubmissionCache()

    async def save_cache(self, cache: SubmissionCache) -> None:
        await self.store.set(SUBMISSION_CACHE_KEY, cache.model_dump(mode="json"))

    async def update_cache(self, mutate: Callable[[SubmissionCache], SubmissionCache]) -> SubmissionCache:
        """Apply `mutate` to the stored cache under the store's write lock.

        Every cache writer that can run while a scan is in progress goes through here.
        """

        def _apply(current: Any) -> Any:
            cache = SubmissionCache()
            if current is not None:
                try:
                    cache = SubmissionCache.model_validate(current)
                except ValidationError:
                    logger.warning("Replacing invalid submission cache during update")
            return mutate(cache).model_dump(mode="json")

        updated = await self.store.update(SUBMISSION_CACHE_KEY, _apply)
        return SubmissionCache.model_validate(updated)

    async def record_cache_error(self, message: str) -> SubmissionCache:
        """Stamp `last_error` on the stored cache without touching its entries."""
        return await self.update_cache(lambda cache: cache.model_copy(update={"last_error": message}))

    async def load_user_status(self) -> Optional[UserStatus]:
        return await self._load(USER_STATUS_KEY, UserStatus)

    async def save_user_status(self, status: UserStatus) -> None:
        await self.store.set(USER_STATUS_KEY, status.model_dump(mode="json"))

    async def save_catalog_progress(self, progress: SyncProgress) -> None:
        await self.store.set(CATALOG_PROGRESS_KEY, progress.model_dump(mode="json"))

    async def save_scan_progress(self, progress: SyncProgress) -> None:
        await self.store.set(SUBMISSION_PROGRESS_KEY, progress.model_dump(mode="json"))

    async def clear_catalog_progress(self) -> None:
        await self.store.remove(CATALOG_PROGRESS_KEY)

    async def clear_scan_progress(self) -> None:
        await self.store.remove(SUBMISSION_PROGRESS_KEY)

    async def load_progress(self) -> dict:
        return await self.store.get_many([CATALOG_PROGRESS_KEY, SUBMISSION_PROGRESS_KEY])


__all__ = ["StorageRepository"]
