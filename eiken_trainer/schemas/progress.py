"""Pydantic models for practice and progress endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from eiken_trainer.schemas.vocabulary import WordRead

PracticeMode = Literal["text", "audio"]


class AnswerRequest(BaseModel):
    """Payload for submitting an answer."""

    word_id: int = Field(..., ge=1)
    is_correct: bool
    mode: PracticeMode = "text"


class AnswerResponse(BaseModel):
    """Mastery and scheduling info after an answer."""

    is_mastered: bool
    consecutive_correct: int
    next_review_date: datetime
    interval_days: int


class QuizResponse(BaseModel):
    """Practice batch: due reviews first, then backfill."""

    words: list[WordRead]
    due_count: int


class DueCountResponse(BaseModel):
    due_count: int


class ProgressDetail(BaseModel):
    """Stored memory state for one word in one mode."""

    word_id: int
    learner_id: str
    mode: str
    correct_count: int
    incorrect_count: int
    consecutive_correct: int
    is_mastered: bool
    mastered_at: datetime | None = None
    easiness_factor: float
    repetitions: int
    interval_days: int
    next_review_date: datetime | None = None
    last_practiced: datetime | None = None
    review_stage: int
    reviews_logged: int = 0

    model_config = ConfigDict(from_attributes=True)


class LevelStats(BaseModel):
    total_words: int
    practiced_words: int
    total_correct: int
    total_incorrect: int
    mastered_words: int


class StatsResponse(BaseModel):
    stats: LevelStats


class GlobalMasteryResponse(BaseModel):
    total_mastered: int


class LevelMasteryResponse(BaseModel):
    total_words: int
    mastered_words: int
    is_complete: bool


class ResetLevelRequest(BaseModel):
    level_id: int


class ResetLevelResponse(BaseModel):
    reset_count: int
