"""Pydantic schemas for catalogue endpoints."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LevelRead(BaseModel):
    """A level with the number of words it holds."""

    id: int
    name: str
    display_name: str
    description: Optional[str] = None
    word_count: int = 0


class LevelListResponse(BaseModel):
    levels: list[LevelRead]


class WordRead(BaseModel):
    """Representation of a word."""

    id: int
    english: str
    japanese: str
    level_id: int
    part_of_speech: Optional[str] = None
    example_sentence: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WordWithCounts(WordRead):
    """Word plus the learner's lifetime answer counters."""

    correct_count: int = 0
    incorrect_count: int = 0


class LevelWordsResponse(BaseModel):
    words: list[WordWithCounts]


class WordCreate(BaseModel):
    """Payload for adding a word to the catalogue."""

    english: str = Field(..., min_length=1, max_length=255)
    japanese: str = Field(..., min_length=1)
    level_id: int
    part_of_speech: Optional[str] = Field(None, max_length=50)
    example_sentence: Optional[str] = None


class WordUpdate(WordCreate):
    """Full replacement of a word's fields."""


class WordCreatedResponse(BaseModel):
    id: int


class AdminWordRead(WordRead):
    level_name: Optional[str] = None


class AdminWordListResponse(BaseModel):
    """Paginated catalogue listing."""

    total: int
    words: list[AdminWordRead]


class CsvImportRequest(BaseModel):
    """Raw CSV text; the first line is a header and is skipped."""

    csv_data: str


class CsvImportResponse(BaseModel):
    imported: int
    errors: int
    error_details: list[str]
