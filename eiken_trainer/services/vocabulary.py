"""Service helpers for the word catalogue."""
from __future__ import annotations

import csv
import io
from typing import Any, Sequence

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eiken_trainer.db.models.progress import ReviewLog, WordProgress
from eiken_trainer.db.models.vocabulary import EikenLevel, Word
from eiken_trainer.utils.cache import cache_backend
from eiken_trainer.utils.exceptions import NotFoundError, ValidationError

# (id, name, display_name)
DEFAULT_LEVELS: list[tuple[int, str, str]] = [
    (5, "grade_5", "Grade 5"),
    (4, "grade_4", "Grade 4"),
    (3, "grade_3", "Grade 3"),
    (2, "grade_pre_2", "Grade Pre-2"),
    (1, "grade_2", "Grade 2"),
    (0, "grade_pre_1", "Grade Pre-1"),
    (-1, "grade_1", "Grade 1"),
]

WORD_FIELDS = ("english", "japanese", "level_id", "part_of_speech", "example_sentence")
REQUIRED_TEXT_FIELDS = ("english", "japanese")


def parse_word_row(fields: Sequence[str | None]) -> dict[str, Any]:
    """Turn one CSV row (english, japanese, level_id, [part_of_speech, example_sentence]) into word data."""

    values = [(field or "").strip() for field in fields]
    if len(values) < 3:
        raise ValidationError("Row needs at least english, japanese and level_id")
    english, japanese, raw_level = values[:3]
    if not english or not japanese or not raw_level:
        raise ValidationError("Required field is empty")
    try:
        level_id = int(raw_level)
    except ValueError:
        raise ValidationError(f"Invalid level_id {raw_level!r}") from None

    optional = values[3:5] + ["", ""]
    return {
        "english": english,
        "japanese": japanese,
        "level_id": level_id,
        "part_of_speech": optional[0] or None,
        "example_sentence": optional[1] or None,
    }


class WordNotFoundError(NotFoundError):
    """Raised when a word cannot be located."""


class LevelNotFoundError(NotFoundError):
    """Raised when a level cannot be located."""


class VocabularyService:
    """Query and maintain levels and their words."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------
    def ensure_default_levels(self) -> int:
        """Insert any missing default level; return how many were created."""

        existing = set(self.db.scalars(select(EikenLevel.id)))
        created = 0
        for level_id, name, display_name in DEFAULT_LEVELS:
            if level_id in existing:
                continue
            self.db.add(EikenLevel(id=level_id, name=name, display_name=display_name))
            created += 1
        if created:
            self.db.flush()
            cache_backend.invalidate("levels")
            logger.info("Seeded default levels", count=created)
        return created

    def get_level(self, level_id: int) -> EikenLevel:
        level = self.db.get(EikenLevel, level_id)
        if not level:
            raise LevelNotFoundError("Level not found")
        return level

    def list_levels(self) -> list[dict[str, Any]]:
        """Return every level with its word count, highest id first."""

        stmt = (
            select(EikenLevel, func.count(Word.id).label("word_count"))
            .outerjoin(Word, Word.level_id == EikenLevel.id)
            .group_by(EikenLevel.id)
            .order_by(EikenLevel.id.desc())
        )
        return [
            {
                "id": level.id,
                "name": level.name,
                "display_name": level.display_name,
                "description": level.description,
                "word_count": int(word_count or 0),
            }
            for level, word_count in self.db.execute(stmt).all()
        ]

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------
    def get_word(self, word_id: int) -> Word:
        """Retrieve a single word by identifier."""

        word = self.db.get(Word, word_id)
        if not word:
            raise WordNotFoundError("Word not found")
        return word

    def list_words(
        self, *, level_id: int | None, limit: int, offset: int
    ) -> list[Word]:
        """Return a page of words, newest first within the highest level."""

        stmt = select(Word).order_by(Word.level_id.desc(), Word.id.desc()).offset(offset).limit(limit)
        if level_id is not None:
            stmt = stmt.where(Word.level_id == level_id)
        return list(self.db.scalars(stmt))

    def count_words(self, *, level_id: int | None) -> int:
        """Return the number of words matching the filter."""

        stmt = select(func.count()).select_from(Word)
        if level_id is not None:
            stmt = stmt.where(Word.level_id == level_id)
        return int(self.db.scalar(stmt) or 0)

    def _clean(self, data: dict[str, Any]) -> dict[str, Any]:
        cleaned = {
            field: value.strip() if isinstance(value, str) else value
            for field, value in data.items()
            if field in WORD_FIELDS
        }
        blank = [field for field in REQUIRED_TEXT_FIELDS if field in cleaned and not cleaned[field]]
        if blank:
            raise ValidationError("Word text must not be blank", {"fields": blank})
        return cleaned

    def create_word(self, data: dict[str, Any]) -> Word:
        data = self._clean(data)
        if any(not data.get(field) for field in REQUIRED_TEXT_FIELDS):
            raise ValidationError("english and japanese are required")
        self.get_level(data["level_id"])
        word = Word(**{field: data.get(field) for field in WORD_FIELDS})
        self.db.add(word)
        self.db.flush([word])
        cache_backend.invalidate("levels")
        logger.info("Word created", word_id=word.id, level_id=word.level_id)
        return word

    def update_word(self, word_id: int, data: dict[str, Any]) -> Word:
        word = self.get_word(word_id)
        data = self._clean(data)
        if "level_id" in data:
            self.get_level(data["level_id"])
        for field in WORD_FIELDS:
            if field in data:
                setattr(word, field, data[field])
        self.db.flush([word])
        cache_backend.invalidate("levels")
        return word

    def delete_word(self, word_id: int) -> None:
        """Delete a word together with every learner's progress on it."""

        word = self.get_word(word_id)
        progress_ids = select(WordProgress.id).where(WordProgress.word_id == word_id)
        self.db.execute(
            delete(ReviewLog)
            .where(ReviewLog.progress_id.in_(progress_ids))
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(WordProgress)
            .where(WordProgress.word_id == word_id)
            .execution_options(synchronize_session=False)
        )
        self.db.delete(word)
        self.db.flush()
        cache_backend.invalidate("levels")
        cache_backend.invalidate("progress:due")
        logger.info("Word deleted", word_id=word_id)

    def import_csv(self, csv_data: str) -> dict[str, Any]:
        """Insert every row of ``csv_data`` after the header line.

        Each row is written in its own savepoint, so a bad row is reported in
        ``error_details`` without undoing the rows imported before it.
        """

        reader = csv.reader(io.StringIO(csv_data.strip()))
        next(reader, None)

        imported = 0
        error_details: list[str] = []
        for fields in reader:
            if not any(field.strip() for field in fields):
                continue
            line_number = reader.line_num
            try:
                data = parse_word_row(fields)
                with self.db.begin_nested():
                    self.create_word(data)
            except (ValidationError, NotFoundError) as exc:
                error_details.append(f"line {line_number}: {exc.message}")
                continue
            except SQLAlchemyError as exc:
                logger.warning("CSV row rejected by database", line=line_number, error=str(exc))
                error_details.append(f"line {line_number}: {exc.__class__.__name__}")
                continue
            imported += 1

        logger.info("CSV import finished", imported=imported, errors=len(error_details))
        return {"imported": imported, "errors": len(error_details), "error_details": error_details}
