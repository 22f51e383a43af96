"""Storage key names and the schema version marker."""

from __future__ import annotations

CATALOG_KEY = "catalog"
SUBMISSION_CACHE_KEY = "submission_cache"
USER_STATUS_KEY = "user_status"
VERSION_KEY = "_storage_version"
CATALOG_PROGRESS_KEY = "_sync_progress_catalog"
SUBMISSION_PROGRESS_KEY = "_sync_progress_submissions"

# Bump when a stored blob changes shape; startup migration drops older blobs.
STORAGE_VERSION = 2

VERSIONED_KEYS = (CATALOG_KEY, SUBMISSION_CACHE_KEY)

__all__ = [
    "CATALOG_KEY",
    "CATALOG_PROGRESS_KEY",
    "STORAGE_VERSION",
    "SUBMISSION_CACHE_KEY",
    "SUBMISSION_PROGRESS_KEY",
    "USER_STATUS_KEY",
    "VERSIONED_KEYS",
    "VERSION_KEY",
]
