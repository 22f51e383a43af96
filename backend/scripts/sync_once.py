"""Run a single sync activation against the SQL store and report the outcome."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from leetready.config import get_settings
from leetready.db.session import create_tables, dispose_engine
from leetready.logging_config import configure_logging
from leetready.models import ActivationResult, SyncProgress
from leetready.remote.client import LeetCodeClient
from leetready.storage.repository import StorageRepository
from leetready.storage.store import SqlKeyValueStore
from leetready.sync.coordinator import SyncCoordinator
from leetready.sync.scan_strategy import STRATEGIES, get_strategy

logger = logging.getLogger("leetready.sync_once")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Refresh the catalog and reconcile the submission cache once.")
    parser.add_argument("--username", help="Account to reconcile (default: the signed-in session user).")
    parser.add_argument("--force-catalog", action="store_true", help="Ignore the catalog TTL.")
    parser.add_argument("--strategy", choices=sorted(STRATEGIES), help="Full scan strategy override.")
    parser.add_argument("--full-scan", action="store_true", help="Run a full scan even without a gap.")
    parser.add_argument("--log-level", help="Root log level (default: LEETREADY_LOG_LEVEL or INFO).")
    return parser.parse_args(argv)


def _log_progress(progress: SyncProgress) -> None:
    logger.info("%s %d/%d", progress.phase, progress.fetched, progress.total)


async def run(args: argparse.Namespace) -> ActivationResult:
    settings = get_settings()
    repository = StorageRepository(SqlKeyValueStore())
    async with LeetCodeClient(settings) as client:
        coordinator = SyncCoordinator(repository, client, settings)
        username = args.username
        if not username:
            user = await coordinator.refresh_user_status()
            if user is None or not user.username:
                raise SystemExit("No username given and no signed-in session available.")
            username = user.username
        strategy = get_strategy(args.strategy) if args.strategy else None
        result = await coordinator.activate(username, force_catalog=args.force_catalog, strategy=strategy)
        if args.full_scan and not result.full_scan_ran:
            cache = await coordinator.run_full_scan(strategy, on_progress=_log_progress)
            result = result.model_copy(update={"full_scan_ran": True, "cache_status": cache.status})
        return result


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)
    create_tables()
    try:
        result = asyncio.run(run(args))
    finally:
        dispose_engine()
    logger.info(
        "Sync finished: catalog=%s gap=%s new=%d full_scan=%s status=%s",
        result.catalog.model_dump(exclude_none=True),
        result.gap_detected,
        result.new_count,
        result.full_scan_ran,
        result.cache_status,
    )


if __name__ == "__main__":
    main()
