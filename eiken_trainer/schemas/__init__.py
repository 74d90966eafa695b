"""Pydantic schemas package."""

from eiken_trainer.schemas.progress import (
    AnswerRequest,
    AnswerResponse,
    DueCountResponse,
    GlobalMasteryResponse,
    LevelMasteryResponse,
    LevelStats,
    ProgressDetail,
    QuizResponse,
    ResetLevelRequest,
    ResetLevelResponse,
    StatsResponse,
)
from eiken_trainer.schemas.vocabulary import (
    AdminWordListResponse,
    AdminWordRead,
    CsvImportRequest,
    CsvImportResponse,
    LevelListResponse,
    LevelRead,
    LevelWordsResponse,
    WordCreate,
    WordCreatedResponse,
    WordRead,
    WordUpdate,
    WordWithCounts,
)

__all__ = [
    "AnswerRequest",
    "AnswerResponse",
    "DueCountResponse",
    "GlobalMasteryResponse",
    "LevelMasteryResponse",
    "LevelStats",
    "ProgressDetail",
    "QuizResponse",
    "ResetLevelRequest",
    "ResetLevelResponse",
    "StatsResponse",
    "AdminWordListResponse",
    "AdminWordRead",
    "CsvImportRequest",
    "CsvImportResponse",
    "LevelListResponse",
    "LevelRead",
    "LevelWordsResponse",
    "WordCreate",
    "WordCreatedResponse",
    "WordRead",
    "WordUpdate",
    "WordWithCounts",
]
