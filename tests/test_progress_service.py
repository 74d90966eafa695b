"""Service-level tests for answer recording and batch selection."""
from __future__ import annotations

import datetime as dt

import pytest
from sqlalchemy import func, select, update

from eiken_trainer.core.srs import ReviewStage, reset_mastery
from eiken_trainer.db.models import ReviewLog, Word, WordProgress
from eiken_trainer.services.progress import ProgressService
from eiken_trainer.services.vocabulary import WordNotFoundError
from eiken_trainer.utils.exceptions import ProgressConflictError

NOW = dt.datetime(2024, 4, 1, 9, 0, tzinfo=dt.timezone.utc)
LEARNER = "learner-a"


def answer(service: ProgressService, word: Word, is_correct: bool, *, mode: str = "text", now=NOW):
    outcome = service.record_answer(
        word_id=word.id, learner_id=LEARNER, mode=mode, is_correct=is_correct, now=now
    )
    service.db.commit()
    return outcome


def test_first_answer_creates_state_and_log(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    word = grade5_words[0]

    outcome = answer(service, word, True)

    assert outcome.created
    assert outcome.consecutive_correct == 1
    assert not outcome.is_mastered
    assert outcome.interval_days == 1
    assert outcome.next_review_date == NOW + dt.timedelta(days=1)

    progress = db_session.scalars(select(WordProgress)).one()
    assert progress.review_stage == ReviewStage.LEARNING
    assert progress.correct_count == 1
    log = db_session.scalars(select(ReviewLog)).one()
    assert log.progress_id == progress.id
    assert log.quality == 4
    assert log.easiness_factor_before is None
    assert log.interval_after == 1


def test_second_correct_answer_masters_word(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    word = grade5_words[0]

    answer(service, word, True)
    outcome = answer(service, word, True, now=NOW + dt.timedelta(days=1))

    assert not outcome.created
    assert outcome.is_mastered
    assert outcome.interval_days == 6

    state = service.get_state(word_id=word.id, learner_id=LEARNER, mode="text")
    assert state is not None
    assert state.mastered_at == NOW + dt.timedelta(days=1)
    assert state.review_stage is ReviewStage.MASTERED
    assert db_session.scalar(select(func.count()).select_from(ReviewLog)) == 2


def test_modes_are_tracked_independently(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    word = grade5_words[0]

    answer(service, word, True, mode="text")
    answer(service, word, False, mode="audio")

    text = service.get_state(word_id=word.id, learner_id=LEARNER, mode="text")
    audio = service.get_state(word_id=word.id, learner_id=LEARNER, mode="audio")
    assert text.correct_count == 1 and text.incorrect_count == 0
    assert audio.correct_count == 0 and audio.incorrect_count == 1


def test_unknown_word_raises(db_session, levels) -> None:
    service = ProgressService(db_session)

    with pytest.raises(WordNotFoundError):
        service.record_answer(word_id=9999, learner_id=LEARNER, mode="text", is_correct=True)


class RacingProgressService(ProgressService):
    """Simulates another writer bumping the row between read and write."""

    def __init__(self, db, *, races: int, **kwargs) -> None:
        super().__init__(db, **kwargs)
        self.races = races

    def _load_progress(self, word_id, learner_id, mode):
        progress = super()._load_progress(word_id, learner_id, mode)
        if progress is not None and self.races > 0:
            self.races -= 1
            self.db.execute(
                update(WordProgress)
                .where(WordProgress.id == progress.id)
                .values(correct_count=WordProgress.correct_count + 1)
                .execution_options(synchronize_session=False)
            )
        return progress


def test_lost_race_is_retried_on_fresh_state(db_session, grade5_words) -> None:
    word = grade5_words[0]
    answer(ProgressService(db_session), word, True)

    service = RacingProgressService(db_session, races=1, max_retries=3)
    outcome = answer(service, word, False)

    # one answer from the first call, one from the racing writer, one now
    assert outcome.state.correct_count == 2
    assert outcome.state.incorrect_count == 1
    assert db_session.scalar(select(func.count()).select_from(ReviewLog)) == 2


def test_exhausted_retries_raise_conflict(db_session, grade5_words) -> None:
    word = grade5_words[0]
    answer(ProgressService(db_session), word, True)

    service = RacingProgressService(db_session, races=5, max_retries=2)
    with pytest.raises(ProgressConflictError):
        service.record_answer(word_id=word.id, learner_id=LEARNER, mode="text", is_correct=True)
    db_session.rollback()


class StaleReadProgressService(ProgressService):
    """Reports no stored row once, as a request that lost the first-insert race would."""

    def __init__(self, db, **kwargs) -> None:
        super().__init__(db, **kwargs)
        self.hidden_reads = 1

    def _load_progress(self, word_id, learner_id, mode):
        if self.hidden_reads > 0:
            self.hidden_reads -= 1
            return None
        return super()._load_progress(word_id, learner_id, mode)


def test_duplicate_first_insert_falls_back_to_update(db_session, grade5_words) -> None:
    word = grade5_words[0]
    answer(ProgressService(db_session), word, True)

    outcome = answer(StaleReadProgressService(db_session), word, True)

    assert outcome.created is False
    assert outcome.state.correct_count == 2
    assert outcome.is_mastered
    assert db_session.scalar(select(func.count()).select_from(WordProgress)) == 1
    assert db_session.scalar(select(func.count()).select_from(ReviewLog)) == 2


def test_select_batch_puts_due_words_first(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    due_words = grade5_words[:3]
    # Missed words are due immediately; stagger so ordering is observable.
    for offset, word in zip((2, 0, 1), due_words):
        answer(service, word, False, now=NOW - dt.timedelta(hours=offset))

    batch = service.select_batch(level_id=5, learner_id=LEARNER, desired_count=10, now=NOW)

    assert batch.due_count == 3
    assert len(batch.words) == 10
    assert [word.id for word in batch.words[:3]] == [
        due_words[0].id,
        due_words[2].id,
        due_words[1].id,
    ]
    backfill_ids = {word.id for word in batch.words[3:]}
    assert backfill_ids.isdisjoint(word.id for word in due_words)


def test_due_count_is_not_truncated_by_batch_size(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    for word in grade5_words[:6]:
        answer(service, word, False)

    batch = service.select_batch(level_id=5, learner_id=LEARNER, desired_count=4, now=NOW)

    assert len(batch.words) == 4
    assert batch.due_count == 6


def test_not_yet_due_learning_words_are_skipped(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    learning = grade5_words[0]
    answer(service, learning, True)

    batch = service.select_batch(
        level_id=5, learner_id=LEARNER, desired_count=len(grade5_words), now=NOW
    )

    assert batch.due_count == 0
    assert learning.id not in {word.id for word in batch.words}
    assert len(batch.words) == len(grade5_words) - 1


def test_mastered_words_are_backfill_not_due(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    word = grade5_words[0]
    answer(service, word, True)
    answer(service, word, True)
    answer(service, word, False)  # sticky mastery, next review is now

    later = NOW + dt.timedelta(days=1)
    assert service.count_due(level_id=5, learner_id=LEARNER, now=later) == 0
    batch = service.select_batch(
        level_id=5, learner_id=LEARNER, desired_count=len(grade5_words), now=later
    )

    assert word.id in {w.id for w in batch.words}


def test_select_batch_edge_cases(db_session, grade5_words) -> None:
    service = ProgressService(db_session)

    empty = service.select_batch(level_id=3, learner_id=LEARNER, desired_count=10, now=NOW)
    assert empty.words == [] and empty.due_count == 0

    none_requested = service.select_batch(level_id=5, learner_id=LEARNER, desired_count=0, now=NOW)
    assert none_requested.words == [] and none_requested.due_count == 0


def test_select_batch_is_scoped_to_learner(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    answer(service, grade5_words[0], False)

    other = service.select_batch(level_id=5, learner_id="learner-b", desired_count=3, now=NOW)

    assert other.due_count == 0
    assert len(other.words) == 3


def test_mode_filter_limits_due_pool(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    answer(service, grade5_words[0], False, mode="audio")

    text_batch = service.select_batch(
        level_id=5, learner_id=LEARNER, desired_count=5, mode="text", now=NOW
    )
    audio_batch = service.select_batch(
        level_id=5, learner_id=LEARNER, desired_count=5, mode="audio", now=NOW
    )

    assert text_batch.due_count == 0
    assert audio_batch.due_count == 1
    assert audio_batch.words[0].id == grade5_words[0].id


def test_reset_level_progress_clears_mastery_only(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    word = grade5_words[0]
    answer(service, word, True)
    answer(service, word, True)
    before = service.get_state(word_id=word.id, learner_id=LEARNER, mode="text")

    reset = service.reset_level_progress(level_id=5, learner_id=LEARNER)
    db_session.commit()

    assert reset == 1
    after = service.get_state(word_id=word.id, learner_id=LEARNER, mode="text")
    assert not after.is_mastered
    assert after.mastered_at is None
    assert after.consecutive_correct == 0
    assert after.correct_count == before.correct_count
    assert after.interval_days == before.interval_days
    assert after.next_review_date == before.next_review_date
    assert after == reset_mastery(before)
    stored_stage = db_session.scalar(select(WordProgress.review_stage))
    assert stored_stage == ReviewStage.LEARNING


def test_level_stats_and_mastery(db_session, grade5_words) -> None:
    service = ProgressService(db_session)
    first, second = grade5_words[:2]
    answer(service, first, True)
    answer(service, first, True)
    answer(service, second, False)
    answer(service, first, True, mode="audio")

    stats = service.level_stats(level_id=5, learner_id=LEARNER)

    assert stats == {
        "total_words": len(grade5_words),
        "practiced_words": 2,
        "total_correct": 3,
        "total_incorrect": 1,
        "mastered_words": 1,
    }
    assert service.global_mastered_count(learner_id=LEARNER) == 1
    mastery = service.level_mastery(level_id=5, learner_id=LEARNER)
    assert mastery["is_complete"] is False
    assert service.level_mastery(level_id=3, learner_id=LEARNER)["is_complete"] is False
