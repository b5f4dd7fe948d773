"""initial_compliance_schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels = None
depends_on = None


def _pk() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]
    if updated:
        cols += [
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("is_deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        ]
    return cols


def _audit() -> list[sa.Column]:
    return [
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
    ]


def _json_list(name: str) -> sa.Column:
    return sa.Column(name, postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False)


def upgrade() -> None:
    # ── Tenancy ───────────────────────────────────────────────────────────────
    op.create_table(
        "companies",
        _pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("year_type", sa.String(2), server_default="FY", nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=True),
        sa.Column("industry", sa.String(100), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        _pk(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_roles",
        _pk(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_user_roles_user_company", "user_roles", ["user_id", "company_id"])
    op.create_index("ix_user_roles_company_role", "user_roles", ["company_id", "role"])

    # ── Compliance ────────────────────────────────────────────────────────────
    op.create_table(
        "compliance_templates",
        _pk(),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("requirement", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("compliance_type", sa.String(20), nullable=False),
        _json_list("entity_types"),
        _json_list("industries"),
        _json_list("industry_categories"),
        _json_list("required_documents"),
        sa.Column("penalty", sa.Text(), nullable=True),
        sa.Column("is_critical", sa.Boolean(), server_default=sa.false(), nullable=True),
        sa.Column("financial_year", sa.String(20), nullable=True),
        sa.Column("due_date_offset", sa.Integer(), nullable=True),
        sa.Column("due_month", sa.Integer(), nullable=True),
        sa.Column("due_day", sa.Integer(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=True),
        *_audit(),
        *_timestamps(),
    )

    op.create_table(
        "regulatory_requirements",
        _pk(),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "template_id", sa.Uuid(),
            sa.ForeignKey("compliance_templates.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("requirement", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("compliance_type", sa.String(20), server_default="one-time", nullable=False),
        sa.Column("year_type", sa.String(2), nullable=True),
        sa.Column("financial_year", sa.String(20), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), server_default="not_started", nullable=False),
        sa.Column("status_reason", sa.Text(), nullable=True),
        _json_list("required_documents"),
        sa.Column("is_critical", sa.Boolean(), server_default=sa.false(), nullable=True),
        sa.Column("penalty", sa.Text(), nullable=True),
        sa.Column("filed_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("filed_by", sa.Uuid(), nullable=True),
        *_audit(),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('not_started', 'upcoming', 'pending', 'overdue', 'completed')",
            name="ck_regulatory_requirements_status",
        ),
    )
    op.create_index("ix_regulatory_requirements_company_id", "regulatory_requirements", ["company_id"])
    op.create_index("ix_regulatory_requirements_due_date", "regulatory_requirements", ["due_date"])
    op.create_index("ix_requirements_company_due", "regulatory_requirements", ["company_id", "due_date"])
    op.create_index("ix_requirements_company_status", "regulatory_requirements", ["company_id", "status"])

    op.create_table(
        "company_documents",
        _pk(),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("document_type", sa.String(255), nullable=False),
        sa.Column("folder_name", sa.String(255), nullable=True),
        sa.Column("file_name", sa.String(512), nullable=True),
        sa.Column("period_type", sa.String(20), nullable=True),
        sa.Column("period_key", sa.String(20), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=True),
        sa.Column("period_end", sa.Date(), nullable=True),
        sa.Column(
            "requirement_id", sa.Uuid(),
            sa.ForeignKey("regulatory_requirements.id", ondelete="SET NULL"), nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_company_documents_company_period", "company_documents", ["company_id", "period_key"])

    # ── Notifications & email ────────────────────────────────────────────────
    op.create_table(
        "notifications",
        _pk(),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_notifications_company_id", "notifications", ["company_id"])
    op.create_index("ix_notifications_user_id_is_read", "notifications", ["user_id", "is_read"])

    op.create_table(
        "email_batch_queue",
        _pk(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_email", sa.String(320), nullable=False),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email_type", sa.String(50), nullable=False),
        sa.Column("payload", postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_email_batch_queue_pending", "email_batch_queue", ["processed_at", "created_at"])

    op.create_table(
        "email_preferences",
        _pk(),
        sa.Column(
            "user_id", sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column("unsubscribe_status_changes", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("unsubscribe_reminders", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("unsubscribe_all", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("email_preferences")
    op.drop_index("ix_email_batch_queue_pending", table_name="email_batch_queue")
    op.drop_table("email_batch_queue")
    op.drop_index("ix_notifications_user_id_is_read", table_name="notifications")
    op.drop_index("ix_notifications_company_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_company_documents_company_period", table_name="company_documents")
    op.drop_table("company_documents")
    op.drop_index("ix_requirements_company_status", table_name="regulatory_requirements")
    op.drop_index("ix_requirements_company_due", table_name="regulatory_requirements")
    op.drop_index("ix_regulatory_requirements_due_date", table_name="regulatory_requirements")
    op.drop_index("ix_regulatory_requirements_company_id", table_name="regulatory_requirements")
    op.drop_table("regulatory_requirements")
    op.drop_table("compliance_templates")
    op.drop_index("ix_user_roles_company_role", table_name="user_roles")
    op.drop_index("ix_user_roles_user_company", table_name="user_roles")
    op.drop_table("user_roles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("companies")
