from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Iterator, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from leetready.db.session import create_tables
from leetready.models import CacheEntry, CatalogSnapshot, Item, SubmissionCache, SyncProgress, UserStatus
from leetready.storage.keys import (
    CATALOG_KEY,
    STORAGE_VERSION,
    SUBMISSION_CACHE_KEY,
    USER_STATUS_KEY,
    VERSION_KEY,
)
from leetready.storage.migration import migrate_storage_if_needed
from leetready.storage.repository import StorageRepository
from leetready.storage.store import InMemoryKeyValueStore, SqlKeyValueStore, StorageChange
from leetready.telemetry import capture_events


@pytest.fixture
def sql_store(tmp_path: Path) -> Iterator[SqlKeyValueStore]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'kv.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    create_tables(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    yield SqlKeyValueStore(factory)
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return request.getfixturevalue("sql_store")


def test_set_get_and_remove(store) -> None:
    async def scenario() -> tuple:
        await store.set("a", {"value": 1})
        await store.set("b", [1, 2])
        fetched = await store.get("a")
        many = await store.get_many(["a", "b", "missing"])
        await store.remove(["a", "missing"])
        return fetched, many, await store.get("a"), await store.get("b")

    fetched, many, removed, kept = asyncio.run(scenario())

    assert fetched == {"value": 1}
    assert many == {"a": {"value": 1}, "b": [1, 2]}
    assert removed is None
    assert kept == [1, 2]


def test_overwrite_reports_previous_value(store) -> None:
    changes: List[Dict[str, StorageChange]] = []
    unsubscribe = store.subscribe(changes.append)

    async def scenario() -> None:
        await store.set("k", 1)
        await store.set("k", 2)
        await store.remove("k")

    asyncio.run(scenario())
    unsubscribe()
    asyncio.run(store.set("k", 3))

    assert [change["k"] for change in changes] == [
        StorageChange(old_value=None, new_value=1),
        StorageChange(old_value=1, new_value=2),
        StorageChange(old_value=2, new_value=None),
    ]


def test_update_applies_function_to_current_value(store) -> None:
    async def scenario() -> int:
        await store.set("counter", 1)
        await asyncio.gather(*(store.update("counter", lambda value: value + 1) for _ in range(5)))
        return await store.get("counter")

    assert asyncio.run(scenario()) == 6


def test_failing_listener_does_not_break_writes() -> None:
    store = InMemoryKeyValueStore()

    def _broken(changes):
        raise RuntimeError("listener bug")

    store.subscribe(_broken)
    asyncio.run(store.set("k", "v"))

    assert asyncio.run(store.get("k")) == "v"


def test_in_memory_store_copies_values() -> None:
    store = InMemoryKeyValueStore()
    payload = {"items": [1]}
    asyncio.run(store.set("k", payload))
    payload["items"].append(2)

    fetched = asyncio.run(store.get("k"))
    fetched["items"].append(3)

    assert store.snapshot() == {"k": {"items": [1]}}


def test_repository_round_trips_models(sql_store: SqlKeyValueStore) -> None:
    repository = StorageRepository(sql_store)
    catalog = CatalogSnapshot(items=[Item(slug="two-sum", difficulty="Easy", ac_rate=55.0)], total=1)
    cache = SubmissionCache(
        entries={"two-sum": CacheEntry(solved=True, latest_accepted_timestamp=10, checked_at=20)},
        status="valid",
    )

    async def scenario() -> tuple:
        await repository.save_catalog(catalog)
        await repository.save_cache(cache)
        await repository.save_user_status(UserStatus(is_signed_in=True, username="alice"))
        return await repository.load_catalog(), await repository.load_cache(), await repository.load_user_status()

    loaded_catalog, loaded_cache, user = asyncio.run(scenario())

    assert loaded_catalog == catalog
    assert loaded_cache == cache
    assert user.username == "alice"


def test_invalid_blob_is_discarded() -> None:
    unsolved_with_timestamp = {"solved": False, "latest_accepted_timestamp": 5}
    store = InMemoryKeyValueStore({SUBMISSION_CACHE_KEY: {"entries": {"a": unsolved_with_timestamp}}})
    repository = StorageRepository(store)

    assert asyncio.run(repository.load_cache()) is None
    assert asyncio.run(repository.load_cache_or_empty()).status == "empty"


def test_record_cache_error_keeps_entries() -> None:
    repository = StorageRepository(InMemoryKeyValueStore())
    cache = SubmissionCache(entries={"a": CacheEntry(solved=True, latest_accepted_timestamp=1)}, status="valid")
    asyncio.run(repository.save_cache(cache))

    updated = asyncio.run(repository.record_cache_error("feed unavailable"))

    assert updated.last_error == "feed unavailable"
    assert updated.entries == cache.entries
    assert updated.status == "valid"


def test_progress_keys_are_saved_and_cleared() -> None:
    repository = StorageRepository(InMemoryKeyValueStore())

    async def scenario() -> tuple:
        await repository.save_catalog_progress(SyncProgress(fetched=100, total=300, phase="catalog"))
        await repository.save_scan_progress(SyncProgress(fetched=1, total=2, phase="scanning"))
        during = await repository.load_progress()
        await repository.clear_catalog_progress()
        await repository.clear_scan_progress()
        return during, await repository.load_progress()

    during, after = asyncio.run(scenario())

    assert len(during) == 2
    assert after == {}


def test_migration_clears_versioned_blobs_once() -> None:
    store = InMemoryKeyValueStore(
        {
            VERSION_KEY: STORAGE_VERSION - 1,
            CATALOG_KEY: {"items": []},
            SUBMISSION_CACHE_KEY: {"entries": {}},
            USER_STATUS_KEY: {"username": "alice"},
        }
    )

    with capture_events(["storage_migrated"]) as events:
        first = asyncio.run(migrate_storage_if_needed(store))
        second = asyncio.run(migrate_storage_if_needed(store))

    assert first.migrated is True
    assert first.from_version == STORAGE_VERSION - 1
    assert second.migrated is False
    assert len(events) == 1
    assert store.snapshot() == {VERSION_KEY: STORAGE_VERSION, USER_STATUS_KEY: {"username": "alice"}}
