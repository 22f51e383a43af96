"""Topic readiness scoring over the catalog and the submission cache.

Everything here is pure: callers pass the catalog and cache they already hold
and nothing triggers remote or storage access. Solved items contribute weighted
points to each tracked topic they are tagged with; harder items weigh more, so
a topic's score tracks difficulty cleared rather than raw solve count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Set, Union

from pydantic import BaseModel, Field

from .constants import (
    ALMOST_THRESHOLD,
    EASY_POINTS,
    HARD_POINTS,
    LOWER_AC_RATE,
    MEDIUM_EASIER_POINTS,
    MEDIUM_HARDER_POINTS,
    MEDIUM_TARGET_POINTS,
    READY_THRESHOLD,
    RECOMMENDED_LIST,
    TARGET_TOPIC_COUNTS,
    TARGET_TOPICS,
    UPPER_AC_RATE,
)
from .models import CacheEntry, CatalogSnapshot, DateRange, Item, ReadinessStatus, SubmissionCache

Catalog = Union[CatalogSnapshot, Sequence[Item]]


class TopicReadiness(NamedTuple):
    status: ReadinessStatus
    percentage: float


def catalog_items(catalog: Optional[Catalog]) -> List[Item]:
    if catalog is None:
        return []
    if isinstance(catalog, CatalogSnapshot):
        return list(catalog.items)
    return list(catalog)


def build_accepted_set(
    cache: Optional[SubmissionCache],
    date_range: Optional[DateRange] = None,
) -> Set[str]:
    """Slugs solved in `cache`, restricted to `date_range` when one is given."""
    accepted: Set[str] = set()
    if cache is None:
        return accepted
    for slug, entry in cache.entries.items():
        if not entry.solved:
            continue
        if date_range is not None:
            # Without a timestamp we cannot prove the solve falls in the window.
            if entry.latest_accepted_timestamp is None:
                continue
            if not date_range.contains(entry.latest_accepted_timestamp):
                continue
        accepted.add(slug)
    return accepted


@dataclass
class SolveView:
    """Answers "is this item solved" for one cache and date range."""

    accepted: Set[str]
    entries: Mapping[str, CacheEntry] = field(default_factory=dict)
    allow_status_fallback: bool = True

    @classmethod
    def build(cls, cache: Optional[SubmissionCache], date_range: Optional[DateRange] = None) -> "SolveView":
        return cls(
            accepted=build_accepted_set(cache, date_range),
            entries=cache.entries if cache is not None else {},
            allow_status_fallback=date_range is None,
        )

    def is_solved(self, item: Item) -> bool:
        if item.slug in self.accepted:
            return True
        # The catalog status carries no timestamp, so it only counts all-time
        # and only until the cache has its own opinion about the item.
        return (
            self.allow_status_fallback
            and item.status == "accepted"
            and item.slug not in self.entries
        )


def medium_band(ac_rate: float) -> str:
    if ac_rate >= UPPER_AC_RATE:
        return "easier"
    if ac_rate > LOWER_AC_RATE:
        return "target"
    return "harder"


def solved_points(item: Item) -> float:
    if item.difficulty == "Easy":
        return EASY_POINTS
    if item.difficulty == "Hard":
        return HARD_POINTS
    band = medium_band(item.ac_rate)
    if band == "easier":
        return MEDIUM_EASIER_POINTS
    if band == "target":
        return MEDIUM_TARGET_POINTS
    return MEDIUM_HARDER_POINTS


def readiness_status(normalized: float) -> ReadinessStatus:
    if normalized >= READY_THRESHOLD:
        return "ready"
    if normalized > ALMOST_THRESHOLD:
        return "almost"
    return "notReady"


def compute_readiness(
    catalog: Optional[Catalog],
    cache: Optional[SubmissionCache],
    date_range: Optional[DateRange] = None,
    *,
    target_counts: Mapping[str, int] = TARGET_TOPIC_COUNTS,
) -> Dict[str, TopicReadiness]:
    view = SolveView.build(cache, date_range)
    points: Dict[str, float] = {}
    for item in catalog_items(catalog):
        if not view.is_solved(item):
            continue
        value = solved_points(item)
        for tag in item.topic_tags:
            points[tag.slug] = points.get(tag.slug, 0.0) + value

    readiness: Dict[str, TopicReadiness] = {}
    for topic, target in target_counts.items():
        normalized = points.get(topic, 0.0) / target
        readiness[topic] = TopicReadiness(readiness_status(normalized), normalized * 100)
    return readiness


class Availability(BaseModel):
    total: int = 0
    unsolved: int = 0


class TopicAvailability(BaseModel):
    suggested: Availability = Field(default_factory=Availability)
    easy: Availability = Field(default_factory=Availability)
    medium: Availability = Field(default_factory=Availability)
    hard: Availability = Field(default_factory=Availability)
    random: Availability = Field(default_factory=Availability)

    def record(self, target: str, solved: bool) -> None:
        counts: Availability = getattr(self, target)
        counts.total += 1
        if not solved:
            counts.unsolved += 1


def compute_topic_availability(
    catalog: Optional[Catalog],
    cache: Optional[SubmissionCache],
    is_premium: bool,
    date_range: Optional[DateRange] = None,
    topics: Iterable[str] = TARGET_TOPICS,
) -> Dict[str, TopicAvailability]:
    """Per-topic item counts behind each practice button."""
    availability = {topic: TopicAvailability() for topic in topics}
    view = SolveView.build(cache, date_range)

    for item in catalog_items(catalog):
        if item.paid_only and not is_premium:
            continue
        solved = view.is_solved(item)
        for tag in item.topic_tags:
            topic_counts = availability.get(tag.slug)
            if topic_counts is None:
                continue
            topic_counts.record(item.difficulty.lower(), solved)
            topic_counts.record("suggested", solved)
            topic_counts.record("random", solved)
    return availability


class SuggestedModeState(BaseModel):
    has_unsolved: bool = False
    label: str = "Next Suggested Problem"
    done: int = 0
    total: int = 0


class ReviewModeState(BaseModel):
    enabled: bool = False
    label: str = "Review Random Completed"


class RandomModeState(BaseModel):
    has_unsolved: bool = True
    label: str = "Solve Random Problem"


class PracticeModeStates(BaseModel):
    suggested: SuggestedModeState = Field(default_factory=SuggestedModeState)
    review: ReviewModeState = Field(default_factory=ReviewModeState)
    random: RandomModeState = Field(default_factory=RandomModeState)


def compute_practice_mode_states(
    catalog: Optional[Catalog],
    cache: Optional[SubmissionCache],
    is_premium: bool,
    date_range: Optional[DateRange] = None,
) -> PracticeModeStates:
    states = PracticeModeStates()
    items = catalog_items(catalog)
    if not items:
        return states

    view = SolveView.build(cache, date_range)
    by_slug = {item.slug: item for item in items}

    suggested = states.suggested
    for slug in RECOMMENDED_LIST:
        item = by_slug.get(slug)
        if item is None or (item.paid_only and not is_premium):
            continue
        suggested.total += 1
        if view.is_solved(item):
            suggested.done += 1
        else:
            suggested.has_unsolved = True
    if suggested.has_unsolved:
        suggested.label = f"Next Suggested Problem ({suggested.done}/{suggested.total})"
    else:
        suggested.label = "Solve Random Problem"

    tracked = set(TARGET_TOPICS)
    for item in items:
        if item.paid_only and not is_premium:
            continue
        if not any(tag.slug in tracked for tag in item.topic_tags):
            continue
        if view.is_solved(item):
            states.review.enabled = True
            break

    return states


__all__ = [
    "Availability",
    "PracticeModeStates",
    "SolveView",
    "TopicAvailability",
    "TopicReadiness",
    "build_accepted_set",
    "catalog_items",
    "compute_practice_mode_states",
    "compute_readiness",
    "compute_topic_availability",
    "medium_band",
    "readiness_status",
    "solved_points",
]
