from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from leetready.config import Settings
from leetready.models import (
    AcceptedSubmission,
    CacheEntry,
    CatalogBatch,
    CatalogSnapshot,
    Item,
    SolveResult,
    SubmissionCache,
    UserStatus,
)
from leetready.remote.client import RemoteFetchError
from leetready.storage.keys import STORAGE_VERSION, VERSION_KEY
from leetready.storage.repository import StorageRepository
from leetready.storage.store import InMemoryKeyValueStore
from leetready.sync.coordinator import SyncCoordinator


def _catalog_items() -> List[Item]:
    return [
        Item(slug="two-sum", difficulty="Easy", ac_rate=55.0, status="accepted"),
        Item(slug="three-sum", difficulty="Medium", ac_rate=35.0, status="attempted"),
        Item(slug="lru-cache", difficulty="Medium", ac_rate=45.0, status="accepted"),
        Item(slug="word-ladder", difficulty="Hard", ac_rate=40.0),
    ]


class FakeClient:
    def __init__(self, recent: Optional[List[AcceptedSubmission]] = None) -> None:
        self.recent = recent or []
        self.recent_error: Optional[Exception] = None
        self.user_error: Optional[Exception] = None
        self.catalog_calls = 0
        self.lookups: List[str] = []

    async def fetch_catalog(self, on_progress: Any = None) -> CatalogBatch:
        self.catalog_calls += 1
        items = _catalog_items()
        return CatalogBatch(total=len(items), items=items)

    async def fetch_recent_accepted(self, username: str, limit: int = 20) -> List[AcceptedSubmission]:
        if self.recent_error is not None:
            raise self.recent_error
        return list(self.recent)

    async def fetch_latest_accepted(self, slug: str) -> SolveResult:
        self.lookups.append(slug)
        return SolveResult(solved=True, latest_accepted_timestamp=50)

    async def fetch_user_status(self) -> UserStatus:
        if self.user_error is not None:
            raise self.user_error
        return UserStatus(is_signed_in=True, is_premium=True, username="alice")

    async def aclose(self) -> None:
        return None


def _coordinator(client: FakeClient, initial: Optional[Dict[str, Any]] = None) -> SyncCoordinator:
    seeded = {VERSION_KEY: STORAGE_VERSION, **(initial or {})}
    repository = StorageRepository(InMemoryKeyValueStore(seeded))
    settings = Settings(**{"LEETREADY_SCAN_THROTTLE_MS": 0, "LEETREADY_CATALOG_TTL_SECONDS": 3600})
    return SyncCoordinator(repository, client, settings)


def _recent(slug: str, timestamp: int) -> AcceptedSubmission:
    return AcceptedSubmission(slug=slug, timestamp=str(timestamp))


def _seed_cache(status: str, **solved: int) -> Dict[str, Any]:
    cache = SubmissionCache(
        entries={slug: CacheEntry(solved=True, latest_accepted_timestamp=ts) for slug, ts in solved.items()},
        status=status,
    )
    return {"submission_cache": cache.model_dump(mode="json")}


def _seed_catalog() -> Dict[str, Any]:
    snapshot = CatalogSnapshot(items=_catalog_items(), total=4, fetch_completed_at=10**15)
    return {"catalog": snapshot.model_dump(mode="json")}


def test_first_activation_builds_cache_from_scratch() -> None:
    client = FakeClient(recent=[_recent("two-sum", 100)])
    coordinator = _coordinator(client)

    result = asyncio.run(coordinator.activate("alice"))

    assert result.catalog.count == 4
    assert result.gap_detected is False
    assert result.full_scan_ran is True
    assert result.cache_status == "valid"
    assert client.lookups == ["lru-cache"]
    cache = asyncio.run(coordinator.repository.load_cache())
    assert cache.entries["two-sum"].latest_accepted_timestamp == 100
    assert cache.entries["three-sum"].solved is False


def test_overlap_with_valid_cache_skips_full_scan() -> None:
    client = FakeClient(recent=[_recent("two-sum", 200)])
    coordinator = _coordinator(client, {**_seed_catalog(), **_seed_cache("valid", **{"two-sum": 100})})

    result = asyncio.run(coordinator.activate("alice"))

    assert result.catalog.skipped is True
    assert client.catalog_calls == 0
    assert result.full_scan_ran is False
    assert result.new_count == 1
    assert result.cache_status == "valid"


def test_gap_triggers_full_scan() -> None:
    client = FakeClient(recent=[_recent("word-ladder", 300)])
    coordinator = _coordinator(client, {**_seed_catalog(), **_seed_cache("valid", **{"two-sum": 100})})

    result = asyncio.run(coordinator.activate("alice"))

    assert result.gap_detected is True
    assert result.full_scan_ran is True
    assert result.cache_status == "valid"
    assert client.lookups == ["lru-cache"]


def test_interrupted_scan_is_resumed() -> None:
    client = FakeClient(recent=[_recent("two-sum", 100)])
    coordinator = _coordinator(client, {**_seed_catalog(), **_seed_cache("building", **{"two-sum": 100})})

    result = asyncio.run(coordinator.activate("alice"))

    assert result.full_scan_ran is True
    assert result.cache_status == "valid"


def test_feed_failure_is_recorded_without_losing_entries() -> None:
    client = FakeClient()
    client.recent_error = RemoteFetchError("feed unavailable")
    coordinator = _coordinator(client, {**_seed_catalog(), **_seed_cache("valid", **{"two-sum": 100})})

    result = asyncio.run(coordinator.activate("alice"))

    assert result.incremental_error == "feed unavailable"
    assert result.full_scan_ran is False
    cache = asyncio.run(coordinator.repository.load_cache())
    assert cache.last_error == "feed unavailable"
    assert "two-sum" in cache.entries


def test_scan_is_deferred_without_catalog() -> None:
    client = FakeClient()
    coordinator = _coordinator(client)

    cache = asyncio.run(coordinator.run_full_scan())

    assert cache.status == "empty"
    assert client.lookups == []


def test_user_status_falls_back_to_stored_copy() -> None:
    client = FakeClient()
    coordinator = _coordinator(client)

    fresh = asyncio.run(coordinator.refresh_user_status())
    client.user_error = RemoteFetchError("offline")
    fallback = asyncio.run(coordinator.refresh_user_status())

    assert fresh.username == "alice"
    assert fallback == fresh


class GatedClient(FakeClient):
    """Blocks the first lookup until the test opens the gate."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def fetch_latest_accepted(self, slug: str) -> SolveResult:
        if not self.lookups:
            self.started.set()
            await self.gate.wait()
        return await super().fetch_latest_accepted(slug)


def test_cancel_targets_the_running_scan_not_a_waiting_activation() -> None:
    items = [
        Item(slug="a", difficulty="Easy", ac_rate=50.0, status="accepted"),
        Item(slug="b", difficulty="Easy", ac_rate=50.0, status="accepted"),
    ]
    catalog = CatalogSnapshot(items=items, total=2, fetch_completed_at=10**15)

    async def scenario() -> tuple:
        client = GatedClient()
        coordinator = _coordinator(client, {"catalog": catalog.model_dump(mode="json")})
        scan = asyncio.create_task(coordinator.run_full_scan())
        await client.started.wait()
        activation = asyncio.create_task(coordinator.activate("alice"))
        await asyncio.sleep(0)

        cancelled = coordinator.cancel_scan()
        client.gate.set()
        scanned = await scan
        activated = await activation
        return client, coordinator, cancelled, scanned, activated

    client, coordinator, cancelled, scanned, activated = asyncio.run(scenario())

    assert cancelled is True
    assert scanned.status == "empty"
    assert set(scanned.entries) == {"a"}
    assert activated.full_scan_ran is True
    assert activated.cache_status == "valid"
    assert client.lookups == ["a", "b"]
    assert coordinator.scan_running is False
    assert coordinator.cancel_scan() is False
