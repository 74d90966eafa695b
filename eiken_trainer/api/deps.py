"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from eiken_trainer.config import settings
from eiken_trainer.db.session import get_db
from eiken_trainer.services.progress import ProgressService
from eiken_trainer.services.vocabulary import VocabularyService


def get_learner_id(
    x_learner_id: str | None = Header(
        default=None,
        max_length=64,
        description="Learner identity; falls back to the configured default learner",
    ),
) -> str:
    """Resolve the learner the request acts for."""

    learner_id = (x_learner_id or "").strip()
    return learner_id or settings.DEFAULT_LEARNER_ID


def get_progress_service(db: Session = Depends(get_db)) -> ProgressService:
    return ProgressService(db)


def get_vocabulary_service(db: Session = Depends(get_db)) -> VocabularyService:
    return VocabularyService(db)
