"""Read-only readiness and practice endpoints. None of these touch the network."""

from __future__ import annotations

from typing import Dict, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from .constants import TARGET_TOPIC_COUNTS
from .models import CatalogSnapshot, DateRange, ReadinessStatus, SubmissionCache
from .practice import next_practice_item, practice_item_for_mode
from .readiness import (
    PracticeModeStates,
    TopicAvailability,
    compute_practice_mode_states,
    compute_readiness,
    compute_topic_availability,
)
from .services import get_repository
from .storage.repository import StorageRepository

router = APIRouter(prefix="/api", tags=["readiness"])

RangeParam = Literal["7d", "30d", "120d", "all"]


class TopicReadinessPayload(BaseModel):
    status: ReadinessStatus
    percentage: float
    target: int


class ReadinessResponse(BaseModel):
    range: RangeParam
    topics: Dict[str, TopicReadinessPayload]


class PracticeChoice(BaseModel):
    slug: Optional[str] = None
    available: bool = False


async def _load(
    repository: StorageRepository,
) -> Tuple[Optional[CatalogSnapshot], Optional[SubmissionCache]]:
    catalog = await repository.load_catalog()
    cache = await repository.load_cache()
    return catalog, cache


def _choice(slug: Optional[str]) -> PracticeChoice:
    return PracticeChoice(slug=slug, available=slug is not None)


@router.get("/readiness", response_model=ReadinessResponse)
async def readiness(
    window: RangeParam = Query(default="all", alias="range"),
    repository: StorageRepository = Depends(get_repository),
) -> ReadinessResponse:
    catalog, cache = await _load(repository)
    scores = compute_readiness(catalog, cache, DateRange.from_preset(window))
    return ReadinessResponse(
        range=window,
        topics={
            topic: TopicReadinessPayload(
                status=score.status,
                percentage=round(score.percentage, 2),
                target=TARGET_TOPIC_COUNTS[topic],
            )
            for topic, score in scores.items()
        },
    )


@router.get("/readiness/availability", response_model=Dict[str, TopicAvailability])
async def availability(
    premium: bool = Query(default=False),
    window: RangeParam = Query(default="all", alias="range"),
    repository: StorageRepository = Depends(get_repository),
) -> Dict[str, TopicAvailability]:
    catalog, cache = await _load(repository)
    return compute_topic_availability(catalog, cache, premium, DateRange.from_preset(window))


@router.get("/practice/modes", response_model=PracticeModeStates)
async def practice_modes(
    premium: bool = Query(default=False),
    window: RangeParam = Query(default="all", alias="range"),
    repository: StorageRepository = Depends(get_repository),
) -> PracticeModeStates:
    catalog, cache = await _load(repository)
    return compute_practice_mode_states(catalog, cache, premium, DateRange.from_preset(window))


@router.get("/practice/topic/{topic}", response_model=PracticeChoice)
async def practice_for_topic(
    topic: str,
    target: Literal["suggested", "easy", "medium", "hard", "random"] = Query(default="suggested"),
    premium: bool = Query(default=False),
    window: RangeParam = Query(default="all", alias="range"),
    repository: StorageRepository = Depends(get_repository),
) -> PracticeChoice:
    if topic not in TARGET_TOPIC_COUNTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown topic: {topic}")
    catalog, cache = await _load(repository)
    return _choice(next_practice_item(topic, target, catalog, cache, premium, DateRange.from_preset(window)))


@router.get("/practice/mode/{mode}", response_model=PracticeChoice)
async def practice_for_mode(
    mode: Literal["suggested", "review", "random"],
    premium: bool = Query(default=False),
    window: RangeParam = Query(default="all", alias="range"),
    repository: StorageRepository = Depends(get_repository),
) -> PracticeChoice:
    catalog, cache = await _load(repository)
    return _choice(practice_item_for_mode(mode, catalog, cache, premium, DateRange.from_preset(window)))


__all__ = ["router"]
