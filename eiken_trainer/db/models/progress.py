"""Learner progress models."""
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eiken_trainer.core.srs import MemoryState, ReviewStage
from eiken_trainer.core.srs.sm2 import DEFAULT_EASE_FACTOR, ensure_utc
from eiken_trainer.db.base import Base


class WordProgress(Base):
    """Memory state of one word for one learner in one practice mode."""

    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("word_id", "learner_id", "mode", name="uq_progress_word_learner_mode"),
        Index("ix_progress_learner_next_review", "learner_id", "next_review_date"),
    )

    id = Column(Integer, primary_key=True)
    word_id = Column(
        Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True
    )
    learner_id = Column(String(64), nullable=False, index=True)
    mode = Column(String(20), nullable=False, default="text")

    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    consecutive_correct = Column(Integer, nullable=False, default=0)
    is_mastered = Column(Boolean, nullable=False, default=False)
    mastered_at = Column(DateTime(timezone=True), nullable=True)
    last_practiced = Column(DateTime(timezone=True), nullable=True)

    # SM-2 fields
    easiness_factor = Column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    repetitions = Column(Integer, nullable=False, default=0)
    interval_days = Column(Integer, nullable=False, default=0)
    next_review_date = Column(DateTime(timezone=True), nullable=True)
    review_stage = Column(Integer, nullable=False, default=int(ReviewStage.NEW))  # 0=new, 1=learning, 2=mastered

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    word = relationship("Word")
    reviews = relationship(
        "ReviewLog", back_populates="progress", cascade="all, delete-orphan", passive_deletes=True
    )

    def to_memory_state(self) -> MemoryState:
        """Return an immutable snapshot for the scheduling core."""

        return MemoryState(
            word_id=self.word_id,
            learner_id=self.learner_id,
            mode=self.mode,
            correct_count=self.correct_count or 0,
            incorrect_count=self.incorrect_count or 0,
            consecutive_correct=self.consecutive_correct or 0,
            is_mastered=bool(self.is_mastered),
            mastered_at=ensure_utc(self.mastered_at),
            easiness_factor=self.easiness_factor or DEFAULT_EASE_FACTOR,
            repetitions=self.repetitions or 0,
            interval_days=self.interval_days or 0,
            next_review_date=ensure_utc(self.next_review_date),
            last_practiced=ensure_utc(self.last_practiced),
        )

    @staticmethod
    def column_values(state: MemoryState) -> dict:
        """Map a memory state onto column values, including the derived stage."""

        return {
            "correct_count": state.correct_count,
            "incorrect_count": state.incorrect_count,
            "consecutive_correct": state.consecutive_correct,
            "is_mastered": state.is_mastered,
            "mastered_at": state.mastered_at,
            "last_practiced": state.last_practiced,
            "easiness_factor": state.easiness_factor,
            "repetitions": state.repetitions,
            "interval_days": state.interval_days,
            "next_review_date": state.next_review_date,
            "review_stage": int(state.review_stage),
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<WordProgress word_id={self.word_id!r} learner_id={self.learner_id!r} "
            f"mode={self.mode!r} stage={self.review_stage!r}>"
        )


class ReviewLog(Base):
    """Individual answer history entries for a progress row."""

    __tablename__ = "review_logs"

    id = Column(Integer, primary_key=True)
    progress_id = Column(
        Integer, ForeignKey("progress.id", ondelete="CASCADE"), nullable=False, index=True
    )
    review_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    is_correct = Column(Boolean, nullable=False)
    quality = Column(Integer, nullable=False)

    easiness_factor_before = Column(Float, nullable=True)
    easiness_factor_after = Column(Float, nullable=True)
    interval_before = Column(Integer, nullable=True)
    interval_after = Column(Integer, nullable=True)

    progress = relationship("WordProgress", back_populates="reviews")

    def set_transition(self, before: MemoryState | None, after: MemoryState) -> None:
        """Store scheduling transition values."""

        self.easiness_factor_before = before.easiness_factor if before else None
        self.interval_before = before.interval_days if before else None
        self.easiness_factor_after = after.easiness_factor
        self.interval_after = after.interval_days

    @property
    def reviewed_at(self) -> datetime | None:
        return ensure_utc(self.review_date)
