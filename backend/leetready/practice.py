"""Choosing the next item to practice.

Pure selection over the catalog and cache. Every picker returns `None` when it
has no candidate so the caller can show "nothing available" instead of
navigating somewhere broken.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

from .constants import RECOMMENDED_LIST, RECOMMENDED_MIN_MATCHES, RECOMMENDED_SET, TARGET_TOPICS
from .models import DateRange, Item, SubmissionCache
from .readiness import Catalog, SolveView, catalog_items, compute_readiness, medium_band

logger = logging.getLogger(__name__)

PRACTICE_MODES = ("suggested", "review", "random")
PRACTICE_TARGETS = ("suggested", "easy", "medium", "hard", "random")

# Topic-level "suggested" keeps a learner on easier items until they have
# solved this many in the topic.
EASY_FIRST_LIMIT = 10
BEFORE_TARGET_LIMIT = 15

T = TypeVar("T")


def random_element(values: Sequence[T], rng: Optional[random.Random] = None) -> Optional[T]:
    """Uniform pick, or `None` for an empty sequence."""
    if not values:
        return None
    chooser = rng or random
    return values[chooser.randrange(len(values))]


def prefer_recommended(slugs: Sequence[str], rng: Optional[random.Random] = None) -> Optional[str]:
    preferred = [slug for slug in slugs if slug in RECOMMENDED_SET]
    return random_element(preferred if len(preferred) >= RECOMMENDED_MIN_MATCHES else slugs, rng)


@dataclass
class TopicBuckets:
    easy: List[str] = field(default_factory=list)
    medium_easier: List[str] = field(default_factory=list)
    medium_target: List[str] = field(default_factory=list)
    medium_harder: List[str] = field(default_factory=list)
    hard: List[str] = field(default_factory=list)
    all: List[str] = field(default_factory=list)


@dataclass
class SolvedBuckets:
    easy: List[str] = field(default_factory=list)
    medium: List[str] = field(default_factory=list)
    hard: List[str] = field(default_factory=list)
    all: List[str] = field(default_factory=list)


def classify_topic(
    items: Sequence[Item],
    topic: str,
    view: SolveView,
    is_premium: bool,
) -> tuple[TopicBuckets, SolvedBuckets]:
    unsolved = TopicBuckets()
    solved = SolvedBuckets()
    for item in items:
        if not item.has_topic(topic):
            continue
        if item.paid_only and not is_premium:
            continue
        if view.is_solved(item):
            solved.all.append(item.slug)
            getattr(solved, item.difficulty.lower()).append(item.slug)
            continue
        unsolved.all.append(item.slug)
        if item.difficulty == "Easy":
            unsolved.easy.append(item.slug)
        elif item.difficulty == "Hard":
            unsolved.hard.append(item.slug)
        else:
            getattr(unsolved, f"medium_{medium_band(item.ac_rate)}").append(item.slug)
    return unsolved, solved


def _first(*candidates: Optional[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def next_practice_item(
    topic: str,
    target: str,
    catalog: Optional[Catalog],
    cache: Optional[SubmissionCache],
    is_premium: bool,
    date_range: Optional[DateRange] = None,
    *,
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    if target not in PRACTICE_TARGETS:
        raise ValueError(f"Unknown practice target: {target}")

    view = SolveView.build(cache, date_range)
    unsolved, solved = classify_topic(catalog_items(catalog), topic, view, is_premium)

    if target == "easy":
        return _first(random_element(unsolved.easy, rng), random_element(solved.easy, rng))
    if target == "medium":
        return _first(
            random_element(unsolved.medium_target, rng),
            random_element(unsolved.medium_easier, rng),
            random_element(unsolved.medium_harder, rng),
            random_element(solved.medium, rng),
        )
    if target == "hard":
        return _first(random_element(unsolved.hard, rng), random_element(solved.hard, rng))
    if target == "random":
        return _first(random_element(unsolved.all, rng), random_element(solved.all, rng))

    easy_first = min(EASY_FIRST_LIMIT, len(unsolved.easy))
    before_target = min(BEFORE_TARGET_LIMIT, len(unsolved.easy) + len(unsolved.medium_easier))
    if easy_first > len(solved.all):
        return prefer_recommended(unsolved.easy, rng)
    if before_target > len(solved.all) and unsolved.medium_easier:
        return prefer_recommended(unsolved.medium_easier, rng)

    return _first(
        prefer_recommended(unsolved.medium_target, rng),
        prefer_recommended(unsolved.medium_easier, rng),
        prefer_recommended(unsolved.medium_harder, rng),
        prefer_recommended(unsolved.hard, rng),
        prefer_recommended(unsolved.easy, rng),
        prefer_recommended(solved.all, rng),
    )


def practice_item_for_mode(
    mode: str,
    catalog: Optional[Catalog],
    cache: Optional[SubmissionCache],
    is_premium: bool,
    date_range: Optional[DateRange] = None,
    *,
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    items = catalog_items(catalog)
    view = SolveView.build(cache, date_range)

    if mode == "suggested":
        by_slug = {item.slug: item for item in items}
        for slug in RECOMMENDED_LIST:
            item = by_slug.get(slug)
            if item is None or (item.paid_only and not is_premium):
                continue
            if not view.is_solved(item):
                return slug
        readiness = compute_readiness(items, cache, date_range)
        for topic in TARGET_TOPICS:
            if readiness[topic].status != "ready":
                return next_practice_item(topic, "suggested", items, cache, is_premium, date_range, rng=rng)
        return None

    if mode == "review":
        tracked = set(TARGET_TOPICS)
        solved = [
            item.slug
            for item in items
            if view.is_solved(item)
            and not (item.paid_only and not is_premium)
            and any(tag.slug in tracked for tag in item.topic_tags)
        ]
        return random_element(solved, rng)

    if mode == "random":
        topic = random_element(TARGET_TOPICS, rng) or TARGET_TOPICS[0]
        return next_practice_item(topic, "suggested", items, cache, is_premium, date_range, rng=rng)

    raise ValueError(f"Unknown practice mode: {mode}")


def select_practice_item(
    topic_or_mode: str,
    target: Optional[str],
    catalog: Optional[Catalog],
    cache: Optional[SubmissionCache],
    is_premium: bool,
    date_range: Optional[DateRange] = None,
    *,
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    """Dispatch to a mode picker or a topic picker; `None` means nothing to practice."""
    if topic_or_mode in PRACTICE_MODES:
        choice = practice_item_for_mode(topic_or_mode, catalog, cache, is_premium, date_range, rng=rng)
    else:
        choice = next_practice_item(
            topic_or_mode, target or "suggested", catalog, cache, is_premium, date_range, rng=rng
        )
    if choice is None:
        logger.debug("No practice candidate for %s/%s", topic_or_mode, target)
    return choice


__all__ = [
    "PRACTICE_MODES",
    "PRACTICE_TARGETS",
    "SolvedBuckets",
    "TopicBuckets",
    "classify_topic",
    "next_practice_item",
    "practice_item_for_mode",
    "prefer_recommended",
    "random_element",
    "select_practice_item",
]
