"""Spaced repetition scheduling primitives."""

from eiken_trainer.core.srs.mastery import (
    MASTERY_THRESHOLD,
    MemoryState,
    ReviewStage,
    apply_answer,
    derive_review_stage,
    reset_mastery,
)
from eiken_trainer.core.srs.sm2 import (
    SchedulerState,
    ScheduleResult,
    quality_from_correctness,
    schedule,
)

__all__ = [
    "MASTERY_THRESHOLD",
    "MemoryState",
    "ReviewStage",
    "SchedulerState",
    "ScheduleResult",
    "apply_answer",
    "derive_review_stage",
    "quality_from_correctness",
    "reset_mastery",
    "schedule",
]
