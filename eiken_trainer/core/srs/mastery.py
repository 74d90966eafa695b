"""Memory-state lifecycle for a (word, learner, mode) key.

``apply_answer`` folds one answer into a state: it runs the SM-2 scheduler for
the timing parameters and applies the mastery rule on top of it. Two correct
answers in a row master a word; mastery is sticky and only
``reset_mastery`` clears it.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, replace
from enum import IntEnum

from eiken_trainer.core.srs.sm2 import (
    DEFAULT_EASE_FACTOR,
    TZ,
    SchedulerState,
    ensure_utc,
    quality_from_correctness,
    schedule,
)

MASTERY_THRESHOLD = 2


class ReviewStage(IntEnum):
    NEW = 0
    LEARNING = 1
    MASTERED = 2


def derive_review_stage(*, is_mastered: bool, attempts: int) -> ReviewStage:
    """Project the stage from mastery and attempt count."""

    if is_mastered:
        return ReviewStage.MASTERED
    if attempts > 0:
        return ReviewStage.LEARNING
    return ReviewStage.NEW


@dataclass(frozen=True, slots=True)
class MemoryState:
    """Snapshot of a learner's memory of one word in one practice mode."""

    word_id: int
    learner_id: str
    mode: str
    correct_count: int = 0
    incorrect_count: int = 0
    consecutive_correct: int = 0
    is_mastered: bool = False
    mastered_at: dt.datetime | None = None
    easiness_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    interval_days: int = 0
    next_review_date: dt.datetime | None = None
    last_practiced: dt.datetime | None = None

    @property
    def attempts(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def review_stage(self) -> ReviewStage:
        return derive_review_stage(is_mastered=self.is_mastered, attempts=self.attempts)

    def is_due(self, now: dt.datetime) -> bool:
        """Return True when the state belongs in the review pool at ``now``."""

        if self.review_stage >= ReviewStage.MASTERED or self.next_review_date is None:
            return False
        return ensure_utc(self.next_review_date) <= ensure_utc(now)

    @classmethod
    def fresh(cls, word_id: int, learner_id: str, mode: str) -> "MemoryState":
        return cls(word_id=word_id, learner_id=learner_id, mode=mode)


def apply_answer(
    state: MemoryState, is_correct: bool, now: dt.datetime | None = None
) -> MemoryState:
    """Return the state that results from answering ``state``'s word once."""

    now = ensure_utc(now) or dt.datetime.now(TZ)
    result = schedule(
        SchedulerState(
            easiness_factor=state.easiness_factor,
            repetitions=state.repetitions,
            interval_days=state.interval_days,
        ),
        quality_from_correctness(is_correct),
        now=now,
    )

    consecutive_correct = state.consecutive_correct + 1 if is_correct else 0
    is_mastered = state.is_mastered or consecutive_correct >= MASTERY_THRESHOLD
    mastered_at = state.mastered_at
    if is_mastered and not state.is_mastered:
        mastered_at = now

    return replace(
        state,
        correct_count=state.correct_count + (1 if is_correct else 0),
        incorrect_count=state.incorrect_count + (0 if is_correct else 1),
        consecutive_correct=consecutive_correct,
        is_mastered=is_mastered,
        mastered_at=mastered_at,
        easiness_factor=result.easiness_factor,
        repetitions=result.repetitions,
        interval_days=result.interval_days,
        next_review_date=result.next_review_date,
        last_practiced=now,
    )


def reset_mastery(state: MemoryState) -> MemoryState:
    """Clear mastery while keeping lifetime counters and SRS timing.

    ``ProgressService.reset_level_progress`` applies this same transition as a
    bulk UPDATE; keep the two in step.
    """

    return replace(state, consecutive_correct=0, is_mastered=False, mastered_at=None)
