"""Initial schema: events, reservations, survey responses, users, audit log.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("venue", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("ticket_stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_reserved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_accept_reserve", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("accept_start_date", sa.String(10), nullable=True),
        sa.Column("accept_end_date", sa.String(10), nullable=True),
        sa.Column("max_companions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("ticket_stock >= 0", name="check_ticket_stock_non_negative"),
        sa.CheckConstraint("total_reserved >= 0", name="check_total_reserved_non_negative"),
        sa.CheckConstraint("max_companions >= 0", name="check_max_companions_non_negative"),
    )
    # Listings are always "upcoming events ordered by date"
    op.create_index("ix_events_date", "events", ["date"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("event_id", sa.String(64), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("total_count", sa.Integer(), nullable=False),
        sa.Column("reservation_number", sa.String(16), nullable=False),
        sa.Column("representative_name", sa.String(255), nullable=True),
        sa.Column("companions", sa.JSON(), nullable=True),
        sa.Column("groups", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("total_count >= 0", name="check_reservation_total_non_negative"),
        sa.CheckConstraint("kind IN ('general', 'invited')", name="check_reservation_kind"),
    )
    op.create_index("ix_reservations_event_id", "reservations", ["event_id"])
    # My-page listing: WHERE user_id = ? ORDER BY updated_at DESC
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])

    op.create_table(
        "survey_responses",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("event_id", sa.String(64), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_survey_responses_event_id", "survey_responses", ["event_id"])
    op.create_index("ix_survey_responses_user_id", "survey_responses", ["user_id"])

    op.create_table(
        "app_configs",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("is_member", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "archived_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_archived_users_user_id", "archived_users", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("operation_id", sa.String(200), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("error_detail", sa.JSON(), nullable=True),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_operation", "audit_logs", ["operation_id", "created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("archived_users")
    op.drop_table("users")
    op.drop_table("app_configs")
    op.drop_table("survey_responses")
    op.drop_table("reservations")
    op.drop_table("events")
