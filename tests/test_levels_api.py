"""Tests for level browsing and word catalogue endpoints."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from eiken_trainer.db.models import Word, WordProgress

LEARNER_HEADERS = {"X-Learner-Id": "learner-a"}


def test_levels_listed_highest_first_with_counts(client: TestClient, grade5_words) -> None:
    response = client.get("/api/v1/levels")

    assert response.status_code == 200
    levels = response.json()["levels"]
    assert [level["id"] for level in levels] == [5, 4, 3, 2, 1, 0, -1]
    assert levels[0]["display_name"] == "Grade 5"
    assert levels[0]["word_count"] == len(grade5_words)
    assert levels[1]["word_count"] == 0


def test_level_words_include_learner_counters(client: TestClient, grade5_words) -> None:
    word_id = grade5_words[0].id
    client.post(
        "/api/v1/progress",
        json={"word_id": word_id, "is_correct": True},
        headers=LEARNER_HEADERS,
    )
    client.post(
        "/api/v1/progress",
        json={"word_id": word_id, "is_correct": False, "mode": "audio"},
        headers=LEARNER_HEADERS,
    )

    response = client.get(
        "/api/v1/words/5", params={"limit": 100}, headers=LEARNER_HEADERS
    )

    assert response.status_code == 200
    words = {word["id"]: word for word in response.json()["words"]}
    assert len(words) == len(grade5_words)
    assert words[word_id]["correct_count"] == 1
    assert words[word_id]["incorrect_count"] == 1
    assert words[grade5_words[1].id]["correct_count"] == 0


def test_stats_and_level_mastery(client: TestClient, grade5_words) -> None:
    for is_correct in (True, True):
        client.post(
            "/api/v1/progress",
            json={"word_id": grade5_words[0].id, "is_correct": is_correct},
            headers=LEARNER_HEADERS,
        )

    stats = client.get("/api/v1/stats/5", headers=LEARNER_HEADERS).json()["stats"]
    assert stats["total_words"] == len(grade5_words)
    assert stats["practiced_words"] == 1
    assert stats["total_correct"] == 2
    assert stats["mastered_words"] == 1

    mastery = client.get("/api/v1/mastery/level/5", headers=LEARNER_HEADERS).json()
    assert mastery == {
        "total_words": len(grade5_words),
        "mastered_words": 1,
        "is_complete": False,
    }


def test_admin_word_lifecycle(client: TestClient, db_session, levels) -> None:
    created = client.post(
        "/api/v1/admin/words",
        json={
            "english": "river",
            "japanese": "川",
            "level_id": 4,
            "part_of_speech": "noun",
            "example_sentence": "We swam in the river.",
        },
    )
    assert created.status_code == 201
    word_id = created.json()["id"]

    listing = client.get("/api/v1/admin/words", params={"level_id": 4}).json()
    assert listing["total"] == 1
    assert listing["words"][0]["level_name"] == "Grade 4"

    updated = client.put(
        f"/api/v1/admin/words/{word_id}",
        json={"english": "river", "japanese": "河川", "level_id": 3},
    )
    assert updated.status_code == 200
    assert updated.json()["japanese"] == "河川"
    assert updated.json()["level_id"] == 3

    client.post("/api/v1/progress", json={"word_id": word_id, "is_correct": False})
    deleted = client.delete(f"/api/v1/admin/words/{word_id}")
    assert deleted.status_code == 204
    assert db_session.scalar(select(func.count()).select_from(WordProgress)) == 0
    assert client.delete(f"/api/v1/admin/words/{word_id}").status_code == 404


def test_admin_create_rejects_unknown_level(client: TestClient, levels) -> None:
    response = client.post(
        "/api/v1/admin/words", json={"english": "x", "japanese": "y", "level_id": 42}
    )

    assert response.status_code == 404


def test_admin_create_rejects_blank_text(client: TestClient, levels) -> None:
    response = client.post(
        "/api/v1/admin/words", json={"english": "   ", "japanese": "山", "level_id": 5}
    )

    assert response.status_code == 422
    assert response.json()["detail"]["details"] == {"fields": ["english"]}


def test_admin_csv_import_reports_bad_rows(client: TestClient, db_session, levels) -> None:
    csv_data = (
        "english,japanese,level_id,part_of_speech,example_sentence\n"
        'river,川,4,noun,"We swam, then rested."\n'
        "\n"
        "mountain,山\n"
        ",空,5\n"
        "cloud,雲,99\n"
        "tree,木,abc\n"
        "sky,空,5\n"
    )

    response = client.post("/api/v1/admin/import-csv", json={"csv_data": csv_data})

    assert response.status_code == 200
    payload = response.json()
    assert payload["imported"] == 2
    assert payload["errors"] == 4
    assert [detail.split(":")[0] for detail in payload["error_details"]] == [
        "line 4",
        "line 5",
        "line 6",
        "line 7",
    ]
    words = {word.english: word for word in db_session.scalars(select(Word))}
    assert set(words) == {"river", "sky"}
    assert words["river"].example_sentence == "We swam, then rested."
    assert words["sky"].part_of_speech is None


def test_admin_csv_import_rejects_empty_payload(client: TestClient, levels) -> None:
    response = client.post("/api/v1/admin/import-csv", json={"csv_data": "  \n"})

    assert response.status_code == 400


def test_level_listing_cache_is_invalidated_on_new_word(client: TestClient, levels) -> None:
    assert client.get("/api/v1/levels").json()["levels"][0]["word_count"] == 0

    client.post("/api/v1/admin/words", json={"english": "sun", "japanese": "太陽", "level_id": 5})

    assert client.get("/api/v1/levels").json()["levels"][0]["word_count"] == 1


@pytest.mark.asyncio
async def test_levels_over_async_client(async_client, levels) -> None:
    response = await async_client.get("/api/v1/levels")

    assert response.status_code == 200
    assert len(response.json()["levels"]) == 7
