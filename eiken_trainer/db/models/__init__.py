"""Database models package."""
from eiken_trainer.db.models.vocabulary import EikenLevel, Word
from eiken_trainer.db.models.progress import ReviewLog, WordProgress

__all__ = [
    "EikenLevel",
    "Word",
    "WordProgress",
    "ReviewLog",
]
