"""Async key-value stores with change notification.

Every writer of the catalog and the submission cache goes through one of these
stores. Writes on a store are serialized by a single lock so checkpoint and
final writes of a scan can never interleave.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from ..db.models import KeyValueEntryModel
from ..db.session import session_scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageChange:
    old_value: Any
    new_value: Any


ChangeListener = Callable[[Dict[str, StorageChange]], None]
Keys = Union[str, Sequence[str]]


class KeyValueStore(Protocol):
    """Protocol describing the durable store used by the sync engine."""

    async def get(self, key: str) -> Any:  # pragma: no cover - protocol definition
        ...

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:  # pragma: no cover
        ...

    async def set(self, key: str, value: Any) -> None:  # pragma: no cover
        ...

    async def remove(self, keys: Keys) -> None:  # pragma: no cover
        ...

    async def update(self, key: str, updater: Callable[[Any], Any]) -> Any:  # pragma: no cover
        ...

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:  # pragma: no cover
        ...


def _as_key_list(keys: Keys) -> List[str]:
    if isinstance(keys, str):
        return [keys]
    return list(keys)


class _BaseStore:
    def __init__(self) -> None:
        self._listeners: List[ChangeListener] = []
        self._write_lock = asyncio.Lock()

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, changes: Dict[str, StorageChange]) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            try:
                listener(changes)
            except Exception:  # noqa: BLE001
                logger.exception("Storage listener failed for keys=%s", sorted(changes))

    async def _read(self, key: str) -> Any:
        raise NotImplementedError

    async def _write(self, key: str, value: Any) -> Any:
        raise NotImplementedError

    async def _delete(self, keys: List[str]) -> Dict[str, Any]:
        raise NotImplementedError

    async def get(self, key: str) -> Any:
        return await self._read(key)

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key in keys:
            value = await self._read(key)
            if value is not None:
                result[key] = value
        return result

    async def set(self, key: str, value: Any) -> None:
        async with self._write_lock:
            old = await self._write(key, value)
        self._notify({key: StorageChange(old_value=old, new_value=value)})

    async def remove(self, keys: Keys) -> None:
        async with self._write_lock:
            removed = await self._delete(_as_key_list(keys))
        self._notify({key: StorageChange(old_value=old, new_value=None) for key, old in removed.items()})

    async def update(self, key: str, updater: Callable[[Any], Any]) -> Any:
        """Read-modify-write `key` under the store's write lock."""
        async with self._write_lock:
            current = await self._read(key)
            updated = updater(current)
            old = await self._write(key, updated)
        self._notify({key: StorageChange(old_value=old, new_value=updated)})
        return updated


class InMemoryKeyValueStore(_BaseStore):
    """Process-local store. Values are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        super().__init__()
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def _read(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def _write(self, key: str, value: Any) -> Any:
        old = self._data.get(key)
        self._data[key] = copy.deepcopy(value)
        return old

    async def _delete(self, keys: List[str]) -> Dict[str, Any]:
        removed: Dict[str, Any] = {}
        for key in keys:
            if key in self._data:
                removed[key] = self._data.pop(key)
        return removed

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


class SqlKeyValueStore(_BaseStore):
    """Store backed by the `kv_entries` table; blocking calls run in a worker thread."""

    def __init__(self, factory: Optional[sessionmaker[Session]] = None) -> None:
        super().__init__()
        self._factory = factory

    async def _read(self, key: str) -> Any:
        return await asyncio.to_thread(self._read_sync, key)

    async def _write(self, key: str, value: Any) -> Any:
        return await asyncio.to_thread(self._write_sync, key, value)

    async def _delete(self, keys: List[str]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._delete_sync, keys)

    def _read_sync(self, key: str) -> Any:
        with session_scope(commit=False, factory=self._factory) as session:
            model = session.get(KeyValueEntryModel, key)
            return None if model is None else model.value

    def _write_sync(self, key: str, value: Any) -> Any:
        with session_scope(factory=self._factory) as session:
            model = session.get(KeyValueEntryModel, key)
            if model is None:
                session.add(KeyValueEntryModel(key=key, value=value))
                return None
            old = model.value
            model.value = value
            model.updated_at = datetime.now(timezone.utc)
            return old

    def _delete_sync(self, keys: List[str]) -> Dict[str, Any]:
        with session_scope(factory=self._factory) as session:
            rows = session.execute(
                select(KeyValueEntryModel).where(KeyValueEntryModel.key.in_(keys))
            ).scalars().all()
            removed = {row.key: row.value for row in rows}
            if removed:
                session.execute(delete(KeyValueEntryModel).where(KeyValueEntryModel.key.in_(list(removed))))
            return removed


__all__ = [
    "ChangeListener",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqlKeyValueStore",
    "StorageChange",
]
