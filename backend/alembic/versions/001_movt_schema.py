# backend/alembic/versions/001_movt_schema.py
"""MOVT schema: users, availability, appointments, ratings, chat, identity mapping

Revision ID: 001_movt_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_movt_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STATUS_SQL = "status IN ('pending', 'confirmed')"


def _create_extension_prefer_extensions_schema(extension_name: str) -> None:
    """Create extension using extensions schema when available."""

    bind = op.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    op.execute(
        f"""
        DO $$
        DECLARE
            extensions_schema_exists BOOLEAN;
            extension_installed BOOLEAN;
        BEGIN
            SELECT EXISTS (
                SELECT 1 FROM pg_namespace WHERE nspname = 'extensions'
            ) INTO extensions_schema_exists;

            SELECT EXISTS (
                SELECT 1 FROM pg_extension WHERE extname = '{extension_name}'
            ) INTO extension_installed;

            IF NOT extension_installed THEN
                IF extensions_schema_exists THEN
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name} WITH SCHEMA extensions';
                ELSE
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name}';
                END IF;
            END IF;
        END
        $$;
        """
    )


def upgrade() -> None:
    """Create all MOVT tables."""
    bind = op.get_bind()
    is_postgres = bind is not None and bind.dialect.name == "postgresql"

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("session_token", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_session_token", "users", ["session_token"], unique=True)

    op.create_table(
        "trainer_profiles",
        sa.Column("trainer_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("total_ratings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["trainer_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("trainer_id"),
        sa.CheckConstraint("total_ratings >= 0", name="ck_trainer_profiles_total_non_negative"),
    )

    op.create_table(
        "trainer_availability_windows",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("trainer_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["trainer_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
    )
    op.create_index(
        "idx_availability_trainer_day",
        "trainer_availability_windows",
        ["trainer_id", "day_of_week"],
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("trainer_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["trainer_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_time < end_time", name="ck_appointments_time_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
    )
    op.create_index("idx_appointments_trainer_date", "appointments", ["trainer_id", "appointment_date"])
    op.create_index("idx_appointments_client", "appointments", ["client_id"])
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["trainer_id", "appointment_date", "start_time"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STATUS_SQL),
        sqlite_where=sa.text(ACTIVE_STATUS_SQL),
    )

    if is_postgres:
        # Same-start duplicates are caught by the partial index; partial
        # overlaps need the range exclusion below.
        _create_extension_prefer_extensions_schema("btree_gist")
        op.execute(
            """
            ALTER TABLE appointments
              ADD COLUMN IF NOT EXISTS appointment_span tsrange
              GENERATED ALWAYS AS (
                tsrange(
                  (appointment_date::timestamp + start_time),
                  (appointment_date::timestamp + end_time),
                  '[)'
                )
              ) STORED
            """
        )
        op.execute(
            f"""
            ALTER TABLE appointments
              ADD CONSTRAINT appointments_no_overlap_per_trainer
              EXCLUDE USING gist (
                trainer_id WITH =,
                appointment_span WITH &&
              )
              WHERE ({ACTIVE_STATUS_SQL})
            """
        )

    op.create_table(
        "appointment_ratings",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("appointment_id", sa.String(length=26), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("target_trainer_id", sa.Integer(), nullable=False),
        sa.Column("professional_score", sa.Integer(), nullable=False),
        sa.Column("training_score", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_trainer_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_id", name="uq_appointment_ratings_appointment"),
        sa.CheckConstraint(
            "professional_score >= 1 AND professional_score <= 5",
            name="ck_appointment_ratings_professional_range",
        ),
        sa.CheckConstraint(
            "training_score >= 1 AND training_score <= 5",
            name="ck_appointment_ratings_training_range",
        ),
    )
    op.create_index("idx_appointment_ratings_trainer", "appointment_ratings", ["target_trainer_id"])

    op.create_table(
        "chat_threads",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("participant1_uuid", sa.String(length=36), nullable=False),
        sa.Column("participant2_uuid", sa.String(length=36), nullable=False),
        sa.Column("pair_key", sa.String(length=80), nullable=False),
        sa.Column("last_message", sa.Text(), nullable=True),
        sa.Column("last_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sender_uuid", sa.String(length=36), nullable=True),
        sa.Column("unread_count_for_1", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unread_count_for_2", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pair_key"),
        sa.CheckConstraint("participant1_uuid <> participant2_uuid", name="ck_chat_threads_distinct"),
        sa.CheckConstraint(
            "unread_count_for_1 >= 0 AND unread_count_for_2 >= 0",
            name="ck_chat_threads_unread_non_negative",
        ),
    )
    op.create_index("idx_chat_threads_participant1", "chat_threads", ["participant1_uuid"])
    op.create_index("idx_chat_threads_participant2", "chat_threads", ["participant2_uuid"])
    op.create_index("idx_chat_threads_last_timestamp", "chat_threads", ["last_timestamp"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.String(length=26), nullable=False),
        sa.Column("thread_id", sa.String(length=26), nullable=False),
        sa.Column("sender_uuid", sa.String(length=36), nullable=False),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=1024), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["thread_id"], ["chat_threads.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "text IS NOT NULL OR image_url IS NOT NULL", name="ck_chat_messages_has_content"
        ),
    )
    op.create_index("idx_chat_messages_thread_created", "chat_messages", ["thread_id", "created_at"])

    op.create_table(
        "user_id_mapping",
        sa.Column("local_user_id", sa.Integer(), nullable=False),
        sa.Column("external_uuid", sa.String(length=36), nullable=False),
        sa.Column("degraded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["local_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("local_user_id"),
    )
    op.create_index("idx_user_id_mapping_external", "user_id_mapping", ["external_uuid"])


def downgrade() -> None:
    """Drop all MOVT tables."""
    bind = op.get_bind()
    is_postgres = bind is not None and bind.dialect.name == "postgresql"

    op.drop_index("idx_user_id_mapping_external", table_name="user_id_mapping")
    op.drop_table("user_id_mapping")

    op.drop_index("idx_chat_messages_thread_created", table_name="chat_messages")
    op.drop_table("chat_messages")

    op.drop_index("idx_chat_threads_last_timestamp", table_name="chat_threads")
    op.drop_index("idx_chat_threads_participant2", table_name="chat_threads")
    op.drop_index("idx_chat_threads_participant1", table_name="chat_threads")
    op.drop_table("chat_threads")

    op.drop_index("idx_appointment_ratings_trainer", table_name="appointment_ratings")
    op.drop_table("appointment_ratings")

    if is_postgres:
        op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_no_overlap_per_trainer")
        op.execute("ALTER TABLE appointments DROP COLUMN IF EXISTS appointment_span")
    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_index("idx_appointments_client", table_name="appointments")
    op.drop_index("idx_appointments_trainer_date", table_name="appointments")
    op.drop_table("appointments")

    op.drop_index("idx_availability_trainer_day", table_name="trainer_availability_windows")
    op.drop_table("trainer_availability_windows")

    op.drop_table("trainer_profiles")

    op.drop_index("ix_users_session_token", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
