"""Strategies deciding which catalog items need a per-item submission lookup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Protocol

from ..models import CacheEntry, Item


@dataclass
class PartitionResult:
    to_query: List[Item] = field(default_factory=list)
    to_mark_unsolved: List[Item] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_query and not self.to_mark_unsolved


class ScanStrategy(Protocol):
    name: str

    def partition(
        self,
        items: Iterable[Item],
        existing: Mapping[str, CacheEntry],
    ) -> PartitionResult:  # pragma: no cover - protocol definition
        ...


class TargetedStrategy:
    """Look up only items the catalog reports as accepted."""

    name = "targeted"

    def partition(self, items: Iterable[Item], existing: Mapping[str, CacheEntry]) -> PartitionResult:
        result = PartitionResult()
        for item in items:
            if item.slug in existing:
                continue
            if item.status == "accepted":
                result.to_query.append(item)
            else:
                result.to_mark_unsolved.append(item)
        return result


class EagerStrategy:
    """Also look up attempted items, in case the catalog status lags behind."""

    name = "eager"

    def partition(self, items: Iterable[Item], existing: Mapping[str, CacheEntry]) -> PartitionResult:
        result = PartitionResult()
        for item in items:
            if item.slug in existing:
                continue
            if item.status is not None:
                result.to_query.append(item)
            else:
                result.to_mark_unsolved.append(item)
        return result


STRATEGIES: Dict[str, ScanStrategy] = {
    TargetedStrategy.name: TargetedStrategy(),
    EagerStrategy.name: EagerStrategy(),
}


def get_strategy(name: str) -> ScanStrategy:
    try:
        return STRATEGIES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown scan strategy: {name}") from exc


__all__ = [
    "EagerStrategy",
    "PartitionResult",
    "STRATEGIES",
    "ScanStrategy",
    "TargetedStrategy",
    "get_strategy",
]
