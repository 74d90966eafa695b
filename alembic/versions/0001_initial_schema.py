"""Create level, word and progress tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


LEVELS = [
    (5, "grade_5", "Grade 5"),
    (4, "grade_4", "Grade 4"),
    (3, "grade_3", "Grade 3"),
    (2, "grade_pre_2", "Grade Pre-2"),
    (1, "grade_2", "Grade 2"),
    (0, "grade_pre_1", "Grade Pre-1"),
    (-1, "grade_1", "Grade 1"),
]


def upgrade() -> None:
    levels = op.create_table(
        "eiken_levels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_unique_constraint("uq_eiken_levels_name", "eiken_levels", ["name"])
    op.bulk_insert(
        levels,
        [{"id": level_id, "name": name, "display_name": display_name} for level_id, name, display_name in LEVELS],
    )

    op.create_table(
        "words",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("english", sa.String(length=255), nullable=False),
        sa.Column("japanese", sa.Text(), nullable=False),
        sa.Column("level_id", sa.Integer(), sa.ForeignKey("eiken_levels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("part_of_speech", sa.String(length=50), nullable=True),
        sa.Column("example_sentence", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_words_level_id", "words", ["level_id"], unique=False)

    op.create_table(
        "progress",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("word_id", sa.Integer(), sa.ForeignKey("words.id", ondelete="CASCADE"), nullable=False),
        sa.Column("learner_id", sa.String(length=64), nullable=False),
        sa.Column("mode", sa.String(length=20), server_default=sa.text("'text'"), nullable=False),
        sa.Column("correct_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("incorrect_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("consecutive_correct", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("is_mastered", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("mastered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_practiced", sa.DateTime(timezone=True), nullable=True),
        sa.Column("easiness_factor", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("repetitions", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("interval_days", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("next_review_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_stage", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("word_id", "learner_id", "mode", name="uq_progress_word_learner_mode"),
    )
    op.create_index("ix_progress_word_id", "progress", ["word_id"], unique=False)
    op.create_index("ix_progress_learner_id", "progress", ["learner_id"], unique=False)
    op.create_index(
        "ix_progress_learner_next_review", "progress", ["learner_id", "next_review_date"], unique=False
    )

    op.create_table(
        "review_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("progress_id", sa.Integer(), sa.ForeignKey("progress.id", ondelete="CASCADE"), nullable=False),
        sa.Column("review_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("quality", sa.Integer(), nullable=False),
        sa.Column("easiness_factor_before", sa.Float(), nullable=True),
        sa.Column("easiness_factor_after", sa.Float(), nullable=True),
        sa.Column("interval_before", sa.Integer(), nullable=True),
        sa.Column("interval_after", sa.Integer(), nullable=True),
    )
    op.create_index("ix_review_logs_progress_id", "review_logs", ["progress_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_review_logs_progress_id", table_name="review_logs")
    op.drop_table("review_logs")
    op.drop_index("ix_progress_learner_next_review", table_name="progress")
    op.drop_index("ix_progress_learner_id", table_name="progress")
    op.drop_index("ix_progress_word_id", table_name="progress")
    op.drop_table("progress")
    op.drop_index("ix_words_level_id", table_name="words")
    op.drop_table("words")
    op.drop_table("eiken_levels")
