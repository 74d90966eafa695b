"""Word catalogue database models."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eiken_trainer.db.base import Base


class EikenLevel(Base):
    """A graded word list (Eiken grade).

    Identifiers follow the exam ladder: 5=Grade 5, 4=Grade 4, 3=Grade 3,
    2=Grade Pre-2, 1=Grade 2, 0=Grade Pre-1, -1=Grade 1.
    """

    __tablename__ = "eiken_levels"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    words = relationship("Word", back_populates="level")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<EikenLevel id={self.id!r} name={self.name!r}>"


class Word(Base):
    """Represents an English/Japanese word pair belonging to a level."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    english = Column(String(255), nullable=False)
    japanese = Column(Text, nullable=False)
    level_id = Column(
        Integer, ForeignKey("eiken_levels.id", ondelete="CASCADE"), nullable=False, index=True
    )

    part_of_speech = Column(String(50))
    example_sentence = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    level = relationship("EikenLevel", back_populates="words")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Word english={self.english!r} level_id={self.level_id!r}>"
