"""Synchronization engine keeping the local submission cache trustworthy."""

from .cache_builder import SubmissionCacheBuilder, build_cache
from .catalog_sync import CatalogSynchronizer
from .coordinator import SyncCoordinator
from .incremental import (
    ChronologyError,
    IncrementalReconciler,
    reconcile_incremental,
    reconcile_recent,
    validate_chronological_order,
)
from .scan_strategy import (
    EagerStrategy,
    PartitionResult,
    ScanStrategy,
    TargetedStrategy,
    get_strategy,
)

__all__ = [
    "CatalogSynchronizer",
    "ChronologyError",
    "EagerStrategy",
    "IncrementalReconciler",
    "PartitionResult",
    "ScanStrategy",
    "SubmissionCacheBuilder",
    "SyncCoordinator",
    "TargetedStrategy",
    "build_cache",
    "get_strategy",
    "reconcile_incremental",
    "reconcile_recent",
    "validate_chronological_order",
]
