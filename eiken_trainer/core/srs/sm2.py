"""SM-2 spaced repetition scheduler.

The classic SuperMemo-2 update law operating on three parameters per memory
state: the easiness factor, the number of consecutive successful repetitions
and the current interval in days. Answers in the trainer are binary, so the
response quality is mapped onto two points of the 0-5 SM-2 scale
(``CORRECT_QUALITY`` and ``INCORRECT_QUALITY``); the general formula is still
evaluated so the numbers match any other SM-2 implementation exactly.

Everything here is pure: no I/O, no clock reads unless ``now`` is omitted.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

CORRECT_QUALITY = 4
INCORRECT_QUALITY = 1

TZ = dt.timezone.utc


@dataclass(frozen=True, slots=True)
class SchedulerState:
    """Scheduling parameters carried between reviews."""

    easiness_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    interval_days: int = 0


@dataclass(frozen=True, slots=True)
class ScheduleResult:
    """Updated parameters returned after a review."""

    easiness_factor: float
    repetitions: int
    interval_days: int
    next_review_date: dt.datetime

    @property
    def state(self) -> SchedulerState:
        return SchedulerState(
            easiness_factor=self.easiness_factor,
            repetitions=self.repetitions,
            interval_days=self.interval_days,
        )


def ensure_utc(value: dt.datetime | None) -> dt.datetime | None:
    """Attach UTC to naive timestamps (SQLite drops tzinfo) and convert aware ones."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=TZ)
    return value.astimezone(TZ)


def quality_from_correctness(is_correct: bool) -> int:
    """Map a binary answer onto the SM-2 quality scale."""

    return CORRECT_QUALITY if is_correct else INCORRECT_QUALITY


def update_ease_factor(ease_factor: float, quality: int) -> float:
    """Update ease factor based on response quality.

    SM-2 formula: EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)),
    never dropping below ``MIN_EASE_FACTOR``.
    """

    distance = MAX_QUALITY - quality
    new_ef = ease_factor + (0.1 - distance * (0.08 + distance * 0.02))
    return max(MIN_EASE_FACTOR, new_ef)


def next_interval(repetitions: int, interval_days: int, ease_factor: float) -> int:
    """Return the interval following a successful review.

    Later intervals round half up, so 58125 * 2.5 gives 145313 days.
    """

    if repetitions == 0:
        return FIRST_INTERVAL_DAYS
    if repetitions == 1:
        return SECOND_INTERVAL_DAYS
    return math.floor(interval_days * ease_factor + 0.5)


def schedule(
    state: SchedulerState, quality: int, now: dt.datetime | None = None
) -> ScheduleResult:
    """Apply one review of ``quality`` to ``state``.

    A quality below ``PASSING_QUALITY`` is a lapse: repetitions and the
    interval start over and the word becomes due immediately.
    """

    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise ValueError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY} inclusive")

    now = ensure_utc(now) or dt.datetime.now(TZ)
    ease_factor = update_ease_factor(state.easiness_factor, quality)

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval_days = 0
    else:
        interval_days = next_interval(state.repetitions, state.interval_days, ease_factor)
        repetitions = state.repetitions + 1

    return ScheduleResult(
        easiness_factor=ease_factor,
        repetitions=repetitions,
        interval_days=interval_days,
        next_review_date=now + dt.timedelta(days=interval_days),
    )
