"""Pytest fixtures for service and API tests."""

import os
from collections.abc import AsyncGenerator, Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("REDIS_URL", None)

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from eiken_trainer.api.deps import get_db
from eiken_trainer.db import models  # noqa: F401  # Imported for side effects
from eiken_trainer.db.base import Base
from eiken_trainer.db.models import EikenLevel, ReviewLog, Word, WordProgress
from eiken_trainer.db.session import configure_sqlite
from eiken_trainer.main import create_app
from eiken_trainer.services.vocabulary import VocabularyService
from eiken_trainer.utils.cache import cache_backend


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for model in (ReviewLog, WordProgress, Word, EikenLevel):
            db.execute(delete(model))
        db.commit()
        db.close()


@pytest.fixture(autouse=True)
def clear_cache() -> Generator[None, None, None]:
    cache_backend.clear()
    try:
        yield
    finally:
        cache_backend.clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture()
async def async_client(db_session: Session) -> AsyncGenerator["httpx.AsyncClient", None]:
    import httpx

    app = create_app()

    async def override_get_db() -> AsyncGenerator[Session, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def levels(db_session: Session) -> dict[int, EikenLevel]:
    VocabularyService(db_session).ensure_default_levels()
    db_session.commit()
    return {level.id: level for level in db_session.query(EikenLevel).all()}


@pytest.fixture()
def grade5_words(db_session: Session, levels) -> list[Word]:
    pairs = [
        ("apple", "りんご", "noun"),
        ("book", "本", "noun"),
        ("cat", "猫", "noun"),
        ("dog", "犬", "noun"),
        ("eat", "食べる", "verb"),
        ("fish", "魚", "noun"),
        ("go", "行く", "verb"),
        ("happy", "幸せな", "adjective"),
        ("ice", "氷", "noun"),
        ("jump", "跳ぶ", "verb"),
        ("kind", "親切な", "adjective"),
        ("lemon", "レモン", "noun"),
        ("milk", "牛乳", "noun"),
        ("name", "名前", "noun"),
        ("open", "開ける", "verb"),
    ]
    words = [
        Word(english=english, japanese=japanese, level_id=5, part_of_speech=pos)
        for english, japanese, pos in pairs
    ]
    db_session.add_all(words)
    db_session.commit()
    return words
