"""initial schema: users, program plans, policies, events

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


revision = "20261017_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("vanderbilt_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("department", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_vanderbilt_id", "users", ["vanderbilt_id"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "program_plans",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("program_type", sa.String(20), nullable=False),
        sa.Column("location", JSONB, nullable=False, server_default="{}"),
        sa.Column("has_alcohol", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("expected_attendance", sa.Integer, nullable=True),
        sa.Column("budget", JSONB, nullable=False, server_default='{"currency": "USD"}'),
        sa.Column("timeline", JSONB, nullable=False, server_default="{}"),
        sa.Column("checklist", JSONB, nullable=False, server_default="[]"),
        sa.Column("conversation_history", JSONB, nullable=False, server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False, server_default="planning"),
        *_timestamps(),
    )
    op.create_index("ix_program_plans_user_id", "program_plans", ["user_id"])
    op.create_index("ix_program_plans_status", "program_plans", ["status"])

    op.create_table(
        "policies",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("category", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("requirements", JSONB, nullable=False, server_default="[]"),
        sa.Column("citations", JSONB, nullable=False, server_default="[]"),
        sa.Column("tags", JSONB, nullable=False, server_default="[]"),
        sa.Column("timeline", JSONB, nullable=False, server_default="{}"),
        sa.Column("role_visibility", sa.String(20), nullable=False, server_default="both"),
        sa.Column("program_types", JSONB, nullable=False, server_default="[]"),
        sa.Column("severity", sa.String(20), nullable=False, server_default="info"),
        *_timestamps(),
    )
    # カテゴリ + ロールでの絞り込み用
    op.create_index(
        "ix_policies_category_role_visibility",
        "policies",
        ["category", "role_visibility"],
    )

    op.create_table(
        "events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=True),
        sa.Column(
            "plan_id",
            UUID(as_uuid=True),
            sa.ForeignKey("program_plans.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default="other"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("expected_attendance", sa.Integer, nullable=True),
        sa.Column("location", JSONB, nullable=False, server_default="{}"),
        sa.Column("budget", JSONB, nullable=False, server_default='{"currency": "USD"}'),
        sa.Column("has_alcohol", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("requires_av", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("catering_required", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column(
            "potentially_controversial",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("event_type", sa.String(20), nullable=False, server_default="other"),
        sa.Column("checklist", JSONB, nullable=False, server_default="[]"),
        sa.Column("timeline", JSONB, nullable=False, server_default="[]"),
        sa.Column("source_message", JSONB, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column(
            "notifications",
            JSONB,
            nullable=False,
            server_default='{"email_opt_in": true, "reminder_days": 5}',
        ),
        sa.Column("share_id", sa.String(64), nullable=True, unique=True),
        sa.Column("share_enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("share_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "collaboration_enabled",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("collaboration_id", sa.String(64), nullable=True, unique=True),
        sa.Column("collaborators", JSONB, nullable=False, server_default="[]"),
        sa.Column("activity_log", JSONB, nullable=False, server_default="[]"),
        sa.Column("generated_communications", JSONB, nullable=False, server_default="[]"),
        *_timestamps(),
    )
    op.create_index("ix_events_user_id", "events", ["user_id"])
    op.create_index("ix_events_owner_id", "events", ["owner_id"])


def downgrade() -> None:
    op.drop_index("ix_events_owner_id", table_name="events")
    op.drop_index("ix_events_user_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_policies_category_role_visibility", table_name="policies")
    op.drop_table("policies")
    op.drop_index("ix_program_plans_status", table_name="program_plans")
    op.drop_index("ix_program_plans_user_id", table_name="program_plans")
    op.drop_table("program_plans")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_vanderbilt_id", table_name="users")
    op.drop_table("users")
