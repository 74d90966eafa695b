"""Level browsing and per-level statistics endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from eiken_trainer.api import deps
from eiken_trainer.schemas import (
    LevelListResponse,
    LevelMasteryResponse,
    LevelWordsResponse,
    StatsResponse,
    WordWithCounts,
)
from eiken_trainer.services.progress import ProgressService
from eiken_trainer.services.vocabulary import VocabularyService
from eiken_trainer.utils.cache import build_cache_key, cache_backend

router = APIRouter(tags=["levels"])


@router.get("/levels", response_model=LevelListResponse)
def list_levels(
    service: VocabularyService = Depends(deps.get_vocabulary_service),
) -> LevelListResponse:
    """Return every level with its word count."""

    return cache_backend.get_or_set(
        "levels",
        build_cache_key(view="all"),
        lambda: LevelListResponse(levels=service.list_levels()).model_dump(mode="json"),
        ttl_seconds=3600,
    )


@router.get("/words/{level_id}", response_model=LevelWordsResponse)
def list_level_words(
    level_id: int,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    learner_id: str = Depends(deps.get_learner_id),
    service: ProgressService = Depends(deps.get_progress_service),
) -> LevelWordsResponse:
    """Return a random slice of the level's words with the learner's counters."""

    rows = service.list_level_words(
        level_id=level_id, learner_id=learner_id, limit=limit, offset=offset
    )
    return LevelWordsResponse(
        words=[
            WordWithCounts.model_validate(row["word"]).model_copy(
                update={
                    "correct_count": row["correct_count"],
                    "incorrect_count": row["incorrect_count"],
                }
            )
            for row in rows
        ]
    )


@router.get("/stats/{level_id}", response_model=StatsResponse)
def get_level_stats(
    level_id: int,
    learner_id: str = Depends(deps.get_learner_id),
    service: ProgressService = Depends(deps.get_progress_service),
) -> StatsResponse:
    """Return answer and mastery totals for the level."""

    return StatsResponse(stats=service.level_stats(level_id=level_id, learner_id=learner_id))


@router.get("/mastery/level/{level_id}", response_model=LevelMasteryResponse)
def get_level_mastery(
    level_id: int,
    learner_id: str = Depends(deps.get_learner_id),
    service: ProgressService = Depends(deps.get_progress_service),
) -> LevelMasteryResponse:
    """Report whether the learner has mastered every word of the level."""

    return LevelMasteryResponse(**service.level_mastery(level_id=level_id, learner_id=learner_id))
