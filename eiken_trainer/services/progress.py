"""Business logic for learner word progress."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from sqlalchemy import and_, case, func, not_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eiken_trainer.config import settings
from eiken_trainer.core.srs import MemoryState, ReviewStage, apply_answer, quality_from_correctness
from eiken_trainer.core.srs.sm2 import ensure_utc
from eiken_trainer.db.models.progress import ReviewLog, WordProgress
from eiken_trainer.db.models.vocabulary import Word
from eiken_trainer.services.vocabulary import WordNotFoundError
from eiken_trainer.utils.cache import cache_backend
from eiken_trainer.utils.exceptions import ProgressConflictError


DUE_CACHE_NAMESPACE = "progress:due"


def due_cache_key(learner_id: str, level_id: int, mode: str | None) -> str:
    return f"{learner_id}:{level_id}:{mode or 'all'}"


@dataclass(slots=True)
class PracticeBatch:
    """Words to present in one practice session."""

    words: list[Word]
    due_count: int


@dataclass(slots=True)
class AnswerOutcome:
    """Result of recording an answer."""

    progress_id: int
    state: MemoryState
    created: bool

    @property
    def is_mastered(self) -> bool:
        return self.state.is_mastered

    @property
    def consecutive_correct(self) -> int:
        return self.state.consecutive_correct

    @property
    def next_review_date(self) -> datetime | None:
        return self.state.next_review_date

    @property
    def interval_days(self) -> int:
        return self.state.interval_days


class ProgressService:
    """High level helper for memory-state workflows."""

    def __init__(self, db: Session, *, max_retries: int | None = None) -> None:
        self.db = db
        self.max_retries = max_retries or settings.PROGRESS_UPDATE_MAX_RETRIES

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def _progress_query(self, word_id: int, learner_id: str, mode: str):
        return select(WordProgress).where(
            and_(
                WordProgress.word_id == word_id,
                WordProgress.learner_id == learner_id,
                WordProgress.mode == mode,
            )
        )

    def _load_progress(self, word_id: int, learner_id: str, mode: str) -> WordProgress | None:
        return self.db.scalars(
            self._progress_query(word_id, learner_id, mode).execution_options(populate_existing=True)
        ).first()

    def get_state(self, *, word_id: int, learner_id: str, mode: str) -> MemoryState | None:
        """Return the stored memory state for the key, if any."""

        progress = self._load_progress(word_id, learner_id, mode)
        return progress.to_memory_state() if progress else None

    def _due_conditions(
        self, level_id: int, learner_id: str, mode: str | None, now: datetime
    ) -> list[Any]:
        conditions = [
            Word.level_id == level_id,
            WordProgress.learner_id == learner_id,
            WordProgress.review_stage < int(ReviewStage.MASTERED),
            WordProgress.next_review_date.isnot(None),
            WordProgress.next_review_date <= now,
        ]
        if mode:
            conditions.append(WordProgress.mode == mode)
        return conditions

    def _learner_states(self, learner_id: str, mode: str | None):
        stmt = select(WordProgress.word_id).where(WordProgress.learner_id == learner_id)
        if mode:
            stmt = stmt.where(WordProgress.mode == mode)
        return stmt

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def count_due(
        self,
        *,
        level_id: int,
        learner_id: str,
        mode: str | None = None,
        now: datetime | None = None,
        use_cache: bool = False,
    ) -> int:
        """Return how many words of the level are due for review."""

        now = ensure_utc(now) or datetime.now(timezone.utc)
        cache_key = due_cache_key(learner_id, level_id, mode)
        if use_cache:
            cached = cache_backend.get(DUE_CACHE_NAMESPACE, cache_key)
            if cached is not None:
                return int(cached)

        stmt = (
            select(func.count(func.distinct(WordProgress.word_id)))
            .select_from(WordProgress)
            .join(Word, Word.id == WordProgress.word_id)
            .where(*self._due_conditions(level_id, learner_id, mode, now))
        )
        result = int(self.db.scalar(stmt) or 0)
        if use_cache:
            cache_backend.set(DUE_CACHE_NAMESPACE, cache_key, result, ttl_seconds=60)
        return result

    def select_batch(
        self,
        *,
        level_id: int,
        learner_id: str,
        desired_count: int,
        mode: str | None = None,
        now: datetime | None = None,
    ) -> PracticeBatch:
        """Assemble a practice batch: overdue reviews first, then backfill.

        Due words come out oldest-due first. Remaining slots are filled in
        random order with words the learner has never attempted or has
        already mastered. ``due_count`` is the full size of the due pool, not
        the number of due words that fit in the batch.
        """

        if desired_count <= 0:
            return PracticeBatch(words=[], due_count=0)

        now = ensure_utc(now) or datetime.now(timezone.utc)
        due_at = func.min(WordProgress.next_review_date).label("due_at")
        due_stmt = (
            select(Word, due_at)
            .join(WordProgress, WordProgress.word_id == Word.id)
            .where(*self._due_conditions(level_id, learner_id, mode, now))
            .group_by(Word.id)
            .order_by(due_at.asc(), Word.id.asc())
            .limit(desired_count)
        )
        words: list[Word] = [word for word, _ in self.db.execute(due_stmt).all()]
        due_count = self.count_due(level_id=level_id, learner_id=learner_id, mode=mode, now=now)

        missing = desired_count - len(words)
        if missing > 0:
            attempted = self._learner_states(learner_id, mode)
            mastered = attempted.where(WordProgress.review_stage == int(ReviewStage.MASTERED))
            backfill_stmt = select(Word).where(
                Word.level_id == level_id,
                or_(not_(Word.id.in_(attempted)), Word.id.in_(mastered)),
            )
            if words:
                backfill_stmt = backfill_stmt.where(Word.id.notin_([word.id for word in words]))
            backfill_stmt = backfill_stmt.order_by(func.random()).limit(missing)
            words.extend(self.db.scalars(backfill_stmt))

        logger.debug(
            "Practice batch assembled",
            level_id=level_id,
            learner_id=learner_id,
            mode=mode,
            size=len(words),
            due_count=due_count,
        )
        return PracticeBatch(words=words, due_count=due_count)

    def list_level_words(
        self, *, level_id: int, learner_id: str, limit: int, offset: int
    ) -> list[dict[str, Any]]:
        """Return a random slice of the level with the learner's answer counters."""

        progress_join = and_(
            WordProgress.word_id == Word.id, WordProgress.learner_id == learner_id
        )
        stmt = (
            select(
                Word,
                func.coalesce(func.sum(WordProgress.correct_count), 0).label("correct_count"),
                func.coalesce(func.sum(WordProgress.incorrect_count), 0).label("incorrect_count"),
            )
            .outerjoin(WordProgress, progress_join)
            .where(Word.level_id == level_id)
            .group_by(Word.id)
            .order_by(func.random())
            .offset(offset)
            .limit(limit)
        )
        return [
            {"word": word, "correct_count": int(correct), "incorrect_count": int(incorrect)}
            for word, correct, incorrect in self.db.execute(stmt).all()
        ]

    # ------------------------------------------------------------------
    # Answer recording
    # ------------------------------------------------------------------
    def record_answer(
        self,
        *,
        word_id: int,
        learner_id: str,
        mode: str,
        is_correct: bool,
        now: datetime | None = None,
    ) -> AnswerOutcome:
        """Fold one answer into the learner's memory state and persist it.

        The write is a compare-and-swap: the UPDATE only applies if the row
        still holds the counters and mastery flags it was computed from. A
        lost race reloads the row and recomputes.
        """

        now = ensure_utc(now) or datetime.now(timezone.utc)
        if self.db.get(Word, word_id) is None:
            raise WordNotFoundError("Word not found")

        outcome: AnswerOutcome | None = None
        for attempt in range(1, self.max_retries + 1):
            progress = self._load_progress(word_id, learner_id, mode)
            if progress is None:
                outcome = self._insert_first_attempt(word_id, learner_id, mode, is_correct, now)
            else:
                outcome = self._compare_and_swap(progress, is_correct, now)
            if outcome is not None:
                break
            logger.debug(
                "Progress write lost a race, retrying",
                word_id=word_id,
                learner_id=learner_id,
                mode=mode,
                attempt=attempt,
            )
        else:
            raise ProgressConflictError(
                "Progress was modified concurrently; please retry",
                details={"word_id": word_id, "learner_id": learner_id, "mode": mode},
            )

        self.invalidate_due_counts(learner_id)
        logger.info(
            "Answer recorded",
            word_id=word_id,
            learner_id=learner_id,
            mode=mode,
            is_correct=is_correct,
            interval_days=outcome.interval_days,
            is_mastered=outcome.is_mastered,
        )
        return outcome

    def invalidate_due_counts(self, learner_id: str) -> None:
        """Drop the learner's cached due counts.

        Endpoints call this again after committing, since a concurrent read
        between the write and the commit can re-cache the old count.
        """

        cache_backend.invalidate(DUE_CACHE_NAMESPACE, prefix=f"{learner_id}:")

    def _insert_first_attempt(
        self, word_id: int, learner_id: str, mode: str, is_correct: bool, now: datetime
    ) -> AnswerOutcome | None:
        state = apply_answer(MemoryState.fresh(word_id, learner_id, mode), is_correct, now)
        progress = WordProgress(
            word_id=word_id,
            learner_id=learner_id,
            mode=mode,
            **WordProgress.column_values(state),
        )
        try:
            with self.db.begin_nested():
                self.db.add(progress)
                self.db.flush([progress])
        except IntegrityError:
            # Another request created the row first; take the update path.
            return None

        self._log_review(progress.id, None, state, is_correct, now)
        return AnswerOutcome(progress_id=progress.id, state=state, created=True)

    def _compare_and_swap(
        self, progress: WordProgress, is_correct: bool, now: datetime
    ) -> AnswerOutcome | None:
        progress_id = progress.id
        before = progress.to_memory_state()
        after = apply_answer(before, is_correct, now)
        stmt = (
            update(WordProgress)
            .where(
                WordProgress.id == progress_id,
                WordProgress.correct_count == before.correct_count,
                WordProgress.incorrect_count == before.incorrect_count,
                WordProgress.consecutive_correct == before.consecutive_correct,
                WordProgress.is_mastered == before.is_mastered,
            )
            .values(updated_at=now, **WordProgress.column_values(after))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.expire(progress)
        if result.rowcount != 1:
            return None

        self._log_review(progress_id, before, after, is_correct, now)
        return AnswerOutcome(progress_id=progress_id, state=after, created=False)

    def _log_review(
        self,
        progress_id: int,
        before: MemoryState | None,
        after: MemoryState,
        is_correct: bool,
        now: datetime,
    ) -> ReviewLog:
        review_log = ReviewLog(
            progress_id=progress_id,
            is_correct=is_correct,
            quality=quality_from_correctness(is_correct),
            review_date=now,
        )
        review_log.set_transition(before, after)
        self.db.add(review_log)
        self.db.flush([review_log])
        return review_log

    # ------------------------------------------------------------------
    # Mastery maintenance
    # ------------------------------------------------------------------
    def reset_level_progress(self, *, level_id: int, learner_id: str) -> int:
        """Clear mastery for every state of the level; counters and timing stay."""

        level_words = select(Word.id).where(Word.level_id == level_id)
        attempts = WordProgress.correct_count + WordProgress.incorrect_count
        stmt = (
            update(WordProgress)
            .where(
                WordProgress.learner_id == learner_id,
                WordProgress.word_id.in_(level_words),
            )
            .values(
                consecutive_correct=0,
                is_mastered=False,
                mastered_at=None,
                review_stage=case(
                    (attempts > 0, int(ReviewStage.LEARNING)),
                    else_=int(ReviewStage.NEW),
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.expire_all()
        self.invalidate_due_counts(learner_id)
        logger.info(
            "Level progress reset", level_id=level_id, learner_id=learner_id, rows=result.rowcount
        )
        return int(result.rowcount or 0)

    # ------------------------------------------------------------------
    # Aggregation helpers
    # ------------------------------------------------------------------
    def level_stats(self, *, level_id: int, learner_id: str) -> dict[str, int]:
        """Return answer and mastery totals for a level."""

        mastered_word = case((WordProgress.is_mastered.is_(True), WordProgress.word_id))
        stmt = (
            select(
                func.count(func.distinct(Word.id)),
                func.count(func.distinct(WordProgress.word_id)),
                func.coalesce(func.sum(WordProgress.correct_count), 0),
                func.coalesce(func.sum(WordProgress.incorrect_count), 0),
                func.count(func.distinct(mastered_word)),
            )
            .select_from(Word)
            .outerjoin(
                WordProgress,
                and_(WordProgress.word_id == Word.id, WordProgress.learner_id == learner_id),
            )
            .where(Word.level_id == level_id)
        )
        total, practiced, correct, incorrect, mastered = self.db.execute(stmt).one()
        return {
            "total_words": int(total or 0),
            "practiced_words": int(practiced or 0),
            "total_correct": int(correct or 0),
            "total_incorrect": int(incorrect or 0),
            "mastered_words": int(mastered or 0),
        }

    def global_mastered_count(self, *, learner_id: str) -> int:
        """Return the number of distinct words mastered in any mode."""

        stmt = select(func.count(func.distinct(WordProgress.word_id))).where(
            WordProgress.learner_id == learner_id,
            WordProgress.is_mastered.is_(True),
        )
        return int(self.db.scalar(stmt) or 0)

    def level_mastery(self, *, level_id: int, learner_id: str) -> dict[str, Any]:
        """Report whether every word of the level is mastered."""

        stats = self.level_stats(level_id=level_id, learner_id=learner_id)
        total = stats["total_words"]
        mastered = stats["mastered_words"]
        return {
            "total_words": total,
            "mastered_words": mastered,
            "is_complete": total > 0 and total == mastered,
        }

    def progress_summary(
        self, *, word_id: int, learner_id: str, mode: str
    ) -> tuple[MemoryState, int] | None:
        """Return the stored state and how many answers were logged for it."""

        progress = self._load_progress(word_id, learner_id, mode)
        if progress is None:
            return None

        review_count = self.db.scalar(
            select(func.count()).select_from(ReviewLog).where(ReviewLog.progress_id == progress.id)
        )
        return progress.to_memory_state(), int(review_count or 0)
