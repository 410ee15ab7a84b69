"""Compliance engine foundation: event bus, findings, tasks, action log.

Revision ID: 001_compliance_foundation
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_compliance_foundation"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def _jsonb(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        nullable=False,
        server_default=sa.text("'{}'::jsonb"),
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    op.create_table(
        "event_bus",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("actor_user_id", sa.Text, nullable=True),
        _jsonb("payload"),
        sa.Column(
            "occurred_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "status",
            sa.Text,
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'processed')",
            name="ck_event_bus_status",
        ),
    )
    op.create_index(
        "ix_event_bus_status_occurred_at", "event_bus", ["status", "occurred_at"]
    )

    op.create_table(
        "findings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("event_bus.id"),
            nullable=False,
        ),
        sa.Column("severity", sa.Text, nullable=False),
        sa.Column("label", sa.Text, nullable=False),
        _jsonb("details"),
        sa.Column("linked_object_type", sa.Text, nullable=True),
        sa.Column("linked_object_id", sa.Text, nullable=True),
        _created_at(),
        sa.CheckConstraint(
            "severity IN ('info', 'warn', 'high', 'critical')",
            name="ck_findings_severity",
        ),
    )
    op.create_index("ix_findings_event_id", "findings", ["event_id"])
    op.create_index("ix_findings_severity", "findings", ["severity"])

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("event_bus.id"),
            nullable=True,
        ),
        sa.Column("kind", sa.Text, nullable=False),
        sa.Column("summary", sa.Text, nullable=False),
        _jsonb("suggested_action"),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "assignee",
            sa.Text,
            nullable=False,
            server_default=sa.text("'admin'"),
        ),
        sa.Column(
            "status",
            sa.Text,
            nullable=False,
            server_default=sa.text("'open'"),
        ),
        _created_at(),
        sa.CheckConstraint(
            "kind IN ('alert', 'review', 'enrich', 'generate_report', 'route')",
            name="ck_tasks_kind",
        ),
        sa.CheckConstraint(
            "status IN ('open', 'in_progress', 'done')",
            name="ck_tasks_status",
        ),
    )
    op.create_index("ix_tasks_status", "tasks", ["status"])

    op.create_table(
        "action_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("target_type", sa.Text, nullable=False),
        sa.Column("target_id", sa.Text, nullable=True),
        _jsonb("details"),
        _created_at(),
    )
    op.create_index("ix_action_log_created_at", "action_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("action_log")
    op.drop_table("tasks")
    op.drop_table("findings")
    op.drop_index("ix_event_bus_status_occurred_at", table_name="event_bus")
    op.drop_table("event_bus")
