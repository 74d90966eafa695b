"""Seed the word catalogue from a CSV file."""
from __future__ import annotations

import csv
import sys
from pathlib import Path

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

sys.path.append(str(Path(__file__).resolve().parent.parent))

from eiken_trainer.db.models.vocabulary import Word
from eiken_trainer.db.session import get_db_context
from eiken_trainer.services.vocabulary import VocabularyService, parse_word_row
from eiken_trainer.utils.exceptions import ValidationError

CSV_COLUMNS = ["english", "japanese", "level_id", "part_of_speech", "example_sentence"]


def load_words_from_csv(csv_path: str | Path, db: Session | None = None) -> int:
    """Load words from a CSV file; return how many were inserted.

    Rows missing ``english``, ``japanese`` or a numeric ``level_id`` are
    skipped, as are words already present in the same level.
    """

    owns_session = db is None
    db = db or get_db_context()
    service = VocabularyService(db)
    loaded = 0

    try:
        service.ensure_default_levels()
        known_levels = {level["id"] for level in service.list_levels()}

        with open(csv_path, "r", encoding="utf-8") as file:
            reader = csv.DictReader(file)

            for line_number, row in enumerate(reader, start=2):
                try:
                    data = parse_word_row([row.get(column) for column in CSV_COLUMNS])
                except ValidationError as exc:
                    logger.warning("Skipping CSV row", line=line_number, reason=exc.message)
                    continue
                if data["level_id"] not in known_levels:
                    logger.warning("Skipping CSV row", line=line_number)
                    continue

                existing = db.scalar(
                    select(Word.id).where(
                        Word.english == data["english"], Word.level_id == data["level_id"]
                    )
                )
                if existing:
                    continue

                service.create_word(data)
                loaded += 1

                if loaded % 100 == 0:
                    db.commit()
                    logger.info("Loaded words", count=loaded)

        db.commit()
        return loaded

    except Exception:  # pragma: no cover - CLI feedback
        db.rollback()
        logger.exception("Error loading words")
        raise
    finally:
        if owns_session:
            db.close()


def generate_sample_csv(output_path: Path | None = None) -> Path:
    """Write a small starter CSV covering the lower grades."""

    sample_data = [
        CSV_COLUMNS,
        ["apple", "りんご", "5", "noun", "I eat an apple every morning."],
        ["library", "図書館", "5", "noun", "She studies at the library."],
        ["run", "走る", "5", "verb", "The dog runs fast."],
        ["beautiful", "美しい", "4", "adjective", "The garden is beautiful."],
        ["borrow", "借りる", "4", "verb", "Can I borrow your pen?"],
        ["weather", "天気", "4", "noun", "The weather is nice today."],
        ["experience", "経験", "3", "noun", "Traveling is a good experience."],
        ["decide", "決める", "3", "verb", "We decided to stay home."],
        ["environment", "環境", "2", "noun", "We must protect the environment."],
        ["improve", "改善する", "2", "verb", "Practice will improve your skills."],
        ["consequence", "結果", "1", "noun", "Every choice has consequences."],
        ["substantial", "相当な", "0", "adjective", "They made substantial progress."],
        ["ubiquitous", "至る所にある", "-1", "adjective", "Smartphones are ubiquitous."],
    ]

    output_path = output_path or Path("words_sample.csv")

    with open(output_path, "w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerows(sample_data)

    logger.info("Sample CSV generated", path=str(output_path))
    return output_path


if __name__ == "__main__":  # pragma: no cover - CLI execution
    import argparse

    from eiken_trainer.logging_config import setup_logging

    setup_logging()

    parser = argparse.ArgumentParser(description="Seed the word catalogue")
    parser.add_argument("--csv", type=str, help="Path to CSV file")
    parser.add_argument(
        "--generate-sample",
        action="store_true",
        help="Generate sample CSV",
    )

    args = parser.parse_args()

    if args.generate_sample:
        generate_sample_csv()
    elif args.csv:
        count = load_words_from_csv(args.csv)
        print(f"Successfully loaded {count} words")
    else:
        parser.error("Please specify --csv path or --generate-sample")
