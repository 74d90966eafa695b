"""Word catalogue maintenance endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from eiken_trainer.api import deps
from eiken_trainer.schemas import (
    AdminWordListResponse,
    AdminWordRead,
    CsvImportRequest,
    CsvImportResponse,
    WordCreate,
    WordCreatedResponse,
    WordRead,
    WordUpdate,
)
from eiken_trainer.services.vocabulary import (
    LevelNotFoundError,
    VocabularyService,
    WordNotFoundError,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/words", response_model=AdminWordListResponse)
def list_words(
    level_id: int | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(deps.get_db),
) -> AdminWordListResponse:
    """Return a page of the catalogue with the total matching count."""

    service = VocabularyService(db)
    words = service.list_words(level_id=level_id, limit=limit, offset=offset)
    total = service.count_words(level_id=level_id)
    return AdminWordListResponse(
        total=total,
        words=[
            AdminWordRead.model_validate(word).model_copy(
                update={"level_name": word.level.display_name if word.level else None}
            )
            for word in words
        ],
    )


@router.post("/words", response_model=WordCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_word(payload: WordCreate, db: Session = Depends(deps.get_db)) -> WordCreatedResponse:
    """Add a word to a level."""

    service = VocabularyService(db)
    try:
        word = service.create_word(payload.model_dump())
    except LevelNotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    db.commit()
    return WordCreatedResponse(id=word.id)


@router.put("/words/{word_id}", response_model=WordRead)
def update_word(
    word_id: int, payload: WordUpdate, db: Session = Depends(deps.get_db)
) -> WordRead:
    """Replace a word's fields."""

    service = VocabularyService(db)
    try:
        word = service.update_word(word_id, payload.model_dump())
    except (WordNotFoundError, LevelNotFoundError) as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    db.commit()
    return WordRead.model_validate(word)


@router.delete("/words/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_word(word_id: int, db: Session = Depends(deps.get_db)) -> Response:
    """Remove a word and all learners' progress on it."""

    service = VocabularyService(db)
    try:
        service.delete_word(word_id)
    except WordNotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/import-csv", response_model=CsvImportResponse)
def import_csv(payload: CsvImportRequest, db: Session = Depends(deps.get_db)) -> CsvImportResponse:
    """Bulk-add words from CSV text (english,japanese,level_id[,part_of_speech,example_sentence])."""

    if not payload.csv_data.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="csv_data is empty")

    result = VocabularyService(db).import_csv(payload.csv_data)
    db.commit()
    return CsvImportResponse(**result)
