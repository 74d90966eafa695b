from eiken_trainer.db import models  # noqa: F401  # Imported for side effects
from eiken_trainer.db.base import Base
from eiken_trainer.db.session import engine, get_db_context
from eiken_trainer.services.vocabulary import VocabularyService

if __name__ == "__main__":
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)
    db = get_db_context()
    try:
        created = VocabularyService(db).ensure_default_levels()
        db.commit()
    finally:
        db.close()
    print(f"Tables created. {created} level(s) seeded.")
