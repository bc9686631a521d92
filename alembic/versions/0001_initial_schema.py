"""Create flashcard scheduling tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "flashcards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("front", sa.Text(), nullable=False),
        sa.Column("back", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=20), server_default=sa.text("'manual'"), nullable=False),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("state", sa.String(length=20), server_default=sa.text("'new'"), nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("interval_days", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("ease_factor", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("reps", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("lapses", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("introduced_on", sa.Date(), nullable=True),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_rating", sa.SmallInteger(), nullable=True),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("ease_factor >= 1.3", name="ck_flashcards_ease_floor"),
        sa.CheckConstraint("interval_days >= 0", name="ck_flashcards_interval_non_negative"),
        sa.CheckConstraint("reps >= 0 AND lapses >= 0", name="ck_flashcards_counters_non_negative"),
    )
    op.create_index("ix_flashcards_user_id", "flashcards", ["user_id"], unique=False)
    op.create_index("ix_flashcards_user_due", "flashcards", ["user_id", "due_at"], unique=False)
    op.create_index(
        "uq_flashcards_user_content_live",
        "flashcards",
        ["user_id", "content_hash"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "user_daily_progress",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date_utc", sa.Date(), nullable=False),
        sa.Column("reviews_done", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("new_introduced", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("goal_override", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("user_id", "date_utc"),
        sa.CheckConstraint("reviews_done >= 0", name="ck_daily_progress_reviews_non_negative"),
        sa.CheckConstraint("new_introduced >= 0", name="ck_daily_progress_new_non_negative"),
        sa.CheckConstraint(
            "goal_override IS NULL OR goal_override >= 0",
            name="ck_daily_progress_goal_override_non_negative",
        ),
    )

    op.create_table(
        "user_settings",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("daily_goal", sa.Integer(), nullable=True),
        sa.Column("new_limit", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.CheckConstraint("daily_goal BETWEEN 1 AND 200", name="ck_user_settings_daily_goal"),
        sa.CheckConstraint("new_limit BETWEEN 0 AND 50", name="ck_user_settings_new_limit"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("acted_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("target_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("card_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    )
    op.create_index("ix_audit_log_acted_by", "audit_log", ["acted_by"], unique=False)

    op.create_table(
        "event_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_name", sa.String(length=50), nullable=False),
        sa.Column("request_id", sa.String(length=255), nullable=True),
        sa.Column("properties", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    )
    op.create_index("ix_event_log_user_id", "event_log", ["user_id"], unique=False)
    op.create_index("ix_event_log_request_id", "event_log", ["request_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_event_log_request_id", table_name="event_log")
    op.drop_index("ix_event_log_user_id", table_name="event_log")
    op.drop_table("event_log")

    op.drop_index("ix_audit_log_acted_by", table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_table("user_settings")
    op.drop_table("user_daily_progress")

    op.drop_index("uq_flashcards_user_content_live", table_name="flashcards")
    op.drop_index("ix_flashcards_user_due", table_name="flashcards")
    op.drop_index("ix_flashcards_user_id", table_name="flashcards")
    op.drop_table("flashcards")
