"""Endpoints for practice batches and answer submission."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from eiken_trainer.api.deps import get_db, get_learner_id
from eiken_trainer.config import settings
from eiken_trainer.schemas import (
    AnswerRequest,
    AnswerResponse,
    DueCountResponse,
    GlobalMasteryResponse,
    ProgressDetail,
    QuizResponse,
    ResetLevelRequest,
    ResetLevelResponse,
    WordRead,
)
from eiken_trainer.schemas.progress import PracticeMode
from eiken_trainer.services.progress import ProgressService
from eiken_trainer.services.vocabulary import WordNotFoundError
from eiken_trainer.utils.exceptions import ProgressError, handle_progress_error


router = APIRouter(tags=["practice"])


@router.get("/quiz/{level_id}", response_model=QuizResponse)
def get_quiz_batch(
    level_id: int,
    count: int = Query(settings.DEFAULT_BATCH_SIZE, ge=0, le=settings.MAX_BATCH_SIZE),
    mode: PracticeMode | None = Query(None, description="Restrict review states to one practice mode"),
    learner_id: str = Depends(get_learner_id),
    db: Session = Depends(get_db),
) -> QuizResponse:
    """Return due reviews first, topped up with new or mastered words."""

    service = ProgressService(db)
    batch = service.select_batch(
        level_id=level_id, learner_id=learner_id, desired_count=count, mode=mode
    )
    return QuizResponse(
        words=[WordRead.model_validate(word) for word in batch.words],
        due_count=batch.due_count,
    )


@router.get("/review-due/{level_id}", response_model=DueCountResponse)
def get_review_due_count(
    level_id: int,
    mode: PracticeMode | None = Query(None),
    learner_id: str = Depends(get_learner_id),
    db: Session = Depends(get_db),
) -> DueCountResponse:
    """Return how many words of the level are due right now."""

    service = ProgressService(db)
    due_count = service.count_due(
        level_id=level_id, learner_id=learner_id, mode=mode, use_cache=True
    )
    return DueCountResponse(due_count=due_count)


@router.post("/progress", response_model=AnswerResponse)
def submit_answer(
    *,
    payload: AnswerRequest,
    learner_id: str = Depends(get_learner_id),
    db: Session = Depends(get_db),
) -> AnswerResponse:
    """Record an answer and return the word's mastery and next review."""

    service = ProgressService(db)
    try:
        outcome = service.record_answer(
            word_id=payload.word_id,
            learner_id=learner_id,
            mode=payload.mode,
            is_correct=payload.is_correct,
        )
    except WordNotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ProgressError as exc:
        db.rollback()
        raise handle_progress_error(exc) from exc

    db.commit()
    service.invalidate_due_counts(learner_id)
    return AnswerResponse(
        is_mastered=outcome.is_mastered,
        consecutive_correct=outcome.consecutive_correct,
        next_review_date=outcome.next_review_date,
        interval_days=outcome.interval_days,
    )


@router.get("/progress/{word_id}", response_model=ProgressDetail)
def get_progress_detail(
    *,
    word_id: int,
    mode: PracticeMode = Query("text"),
    learner_id: str = Depends(get_learner_id),
    db: Session = Depends(get_db),
) -> ProgressDetail:
    """Return the learner's stored memory state for a word."""

    service = ProgressService(db)
    summary = service.progress_summary(word_id=word_id, learner_id=learner_id, mode=mode)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No progress recorded")

    state, reviews_logged = summary
    return ProgressDetail(
        word_id=state.word_id,
        learner_id=state.learner_id,
        mode=state.mode,
        correct_count=state.correct_count,
        incorrect_count=state.incorrect_count,
        consecutive_correct=state.consecutive_correct,
        is_mastered=state.is_mastered,
        mastered_at=state.mastered_at,
        easiness_factor=state.easiness_factor,
        repetitions=state.repetitions,
        interval_days=state.interval_days,
        next_review_date=state.next_review_date,
        last_practiced=state.last_practiced,
        review_stage=int(state.review_stage),
        reviews_logged=reviews_logged,
    )


@router.get("/mastery/global", response_model=GlobalMasteryResponse)
def get_global_mastery(
    learner_id: str = Depends(get_learner_id),
    db: Session = Depends(get_db),
) -> GlobalMasteryResponse:
    """Return the number of distinct words the learner has mastered."""

    service = ProgressService(db)
    return GlobalMasteryResponse(total_mastered=service.global_mastered_count(learner_id=learner_id))


@router.post("/reset-level-progress", response_model=ResetLevelResponse)
def reset_level_progress(
    *,
    payload: ResetLevelRequest,
    learner_id: str = Depends(get_learner_id),
    db: Session = Depends(get_db),
) -> ResetLevelResponse:
    """Clear mastery for the level so its words are practised again."""

    service = ProgressService(db)
    reset_count = service.reset_level_progress(level_id=payload.level_id, learner_id=learner_id)
    db.commit()
    service.invalidate_due_counts(learner_id)
    return ResetLevelResponse(reset_count=reset_count)
