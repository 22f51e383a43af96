"""Domain models for the catalog, the submission cache and sync results."""

from __future__ import annotations

import time
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

Difficulty = Literal["Easy", "Medium", "Hard"]
ItemStatus = Literal["accepted", "attempted"]
CacheStatus = Literal["empty", "building", "valid", "stale"]
ReadinessStatus = Literal["ready", "almost", "notReady"]
PracticeTarget = Literal["suggested", "easy", "medium", "hard", "random"]
PracticeMode = Literal["suggested", "review", "random"]
DateRangePreset = Literal["7d", "30d", "120d", "all"]

_PRESET_DAYS: Dict[str, int] = {"7d": 7, "30d": 30, "120d": 120}


def now_ms() -> int:
    return int(time.time() * 1000)


class TopicTag(BaseModel):
    name: str = ""
    slug: str
    id: Optional[str] = None


class Item(BaseModel):
    """A catalog problem. `status` is only populated by authenticated fetches."""

    slug: str
    title: str = ""
    difficulty: Difficulty
    ac_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    paid_only: bool = False
    status: Optional[ItemStatus] = None
    topic_tags: List[TopicTag] = Field(default_factory=list)
    frontend_id: Optional[str] = None

    def has_topic(self, topic: str) -> bool:
        return any(tag.slug == topic for tag in self.topic_tags)


class CatalogSnapshot(BaseModel):
    """Stored catalog plus the bookkeeping the TTL and single-flight checks rely on."""

    items: List[Item] = Field(default_factory=list)
    total: int = 0
    source: str = "leetcode"
    fetch_started_at: Optional[int] = None
    fetch_completed_at: Optional[int] = None
    last_attempt_at: Optional[int] = None
    last_error: Optional[str] = None
    using_cache: bool = False


class CacheEntry(BaseModel):
    solved: bool
    latest_accepted_timestamp: Optional[int] = None
    checked_at: int = Field(default_factory=now_ms)

    @model_validator(mode="after")
    def _unsolved_has_no_timestamp(self) -> "CacheEntry":
        if not self.solved and self.latest_accepted_timestamp is not None:
            raise ValueError("An unsolved cache entry cannot carry an accepted timestamp.")
        return self


class SubmissionCache(BaseModel):
    """Per-item solve status; the single source of truth for "has the user solved this"."""

    entries: Dict[str, CacheEntry] = Field(default_factory=dict)
    status: CacheStatus = "empty"
    last_full_scan_at: Optional[int] = None
    last_incremental_at: Optional[int] = None
    last_error: Optional[str] = None


class DateRange(BaseModel):
    """Inclusive practice window in unix seconds."""

    start_sec: int
    end_sec: int

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.start_sec > self.end_sec:
            raise ValueError("Date range start must not be after its end.")
        return self

    def contains(self, timestamp: int) -> bool:
        return self.start_sec <= timestamp <= self.end_sec

    @classmethod
    def last_days(cls, days: int, now: Optional[int] = None) -> "DateRange":
        end = int(time.time()) if now is None else now
        return cls(start_sec=end - days * 86400, end_sec=end)

    @classmethod
    def from_preset(cls, preset: str, now: Optional[int] = None) -> Optional["DateRange"]:
        if preset == "all":
            return None
        days = _PRESET_DAYS.get(preset)
        if days is None:
            raise ValueError(f"Unknown date range preset: {preset}")
        return cls.last_days(days, now=now)


class UserStatus(BaseModel):
    is_signed_in: bool = False
    is_premium: bool = False
    username: str = ""


class AcceptedSubmission(BaseModel):
    id: str = ""
    title: str = ""
    slug: str
    timestamp: str


class SubmissionRecord(BaseModel):
    timestamp: str
    status_display: str


class SubmissionPage(BaseModel):
    submissions: List[SubmissionRecord] = Field(default_factory=list)
    has_next: bool = False
    last_key: Optional[str] = None


class SolveResult(BaseModel):
    solved: bool
    latest_accepted_timestamp: Optional[int] = None


class CatalogBatch(BaseModel):
    total: int
    items: List[Item] = Field(default_factory=list)


class SyncProgress(BaseModel):
    fetched: int
    total: int
    phase: str


class CatalogSyncResult(BaseModel):
    skipped: bool = False
    count: Optional[int] = None
    error: Optional[str] = None
    using_cache: Optional[bool] = None


class IncrementalResult(BaseModel):
    gap_detected: bool = False
    new_count: int = 0
    cache: SubmissionCache


class ActivationResult(BaseModel):
    catalog: CatalogSyncResult
    gap_detected: bool = False
    new_count: int = 0
    full_scan_ran: bool = False
    cache_status: CacheStatus = "empty"
    incremental_error: Optional[str] = None


__all__ = [
    "AcceptedSubmission",
    "ActivationResult",
    "CacheEntry",
    "CacheStatus",
    "CatalogBatch",
    "CatalogSnapshot",
    "CatalogSyncResult",
    "DateRange",
    "DateRangePreset",
    "Difficulty",
    "IncrementalResult",
    "Item",
    "ItemStatus",
    "PracticeMode",
    "PracticeTarget",
    "ReadinessStatus",
    "SolveResult",
    "SubmissionCache",
    "SubmissionPage",
    "SubmissionRecord",
    "SyncProgress",
    "TopicTag",
    "UserStatus",
    "now_ms",
]
