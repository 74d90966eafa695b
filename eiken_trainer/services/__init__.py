"""Service layer package."""

from eiken_trainer.services.progress import ProgressService
from eiken_trainer.services.vocabulary import VocabularyService

__all__ = [
    "ProgressService",
    "VocabularyService",
]
