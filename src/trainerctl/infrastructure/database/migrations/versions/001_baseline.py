"""Baseline schema — clients, packages, sessions, payments.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-19

Existing databases created by ``metadata.create_all`` get stamped at this
revision without running it; empty databases get it applied during
``trainerctl upgrade``.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("trainer_id", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.Text),
        sa.Column("client_user_id", sa.Text),
        sa.Column("rate_type", sa.Text, nullable=False, server_default="package"),
        sa.Column("hourly_rate", sa.Text),
        sa.Column("monthly_rate", sa.Text),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("modified_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            "(rate_type = 'hourly' AND hourly_rate IS NOT NULL AND monthly_rate IS NULL)"
            " OR (rate_type = 'monthly' AND monthly_rate IS NOT NULL AND hourly_rate IS NULL)"
            " OR (rate_type = 'package' AND hourly_rate IS NULL AND monthly_rate IS NULL)",
            name="ck_clients_rate_variant",
        ),
    )
    op.create_index("ix_clients_trainer", "clients", ["trainer_id"])
    op.create_index("ix_clients_email", "clients", ["email"])
    op.create_index("ix_clients_user", "clients", ["client_user_id"])

    op.create_table(
        "packages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer, sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("name", sa.Text),
        sa.Column("price", sa.Text),
        sa.Column("sessions_total", sa.Integer, nullable=False),
        sa.Column("sessions_used", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        sa.Column("starts_on", sa.Text),
        sa.Column("expires_on", sa.Text),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            "sessions_used >= 0 AND sessions_used <= sessions_total",
            name="ck_packages_credit_bounds",
        ),
    )
    op.create_index("ix_packages_client_status", "packages", ["client_id", "status"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("trainer_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Integer, sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("title", sa.Text),
        sa.Column("start_at", sa.Text, nullable=False),
        sa.Column("end_at", sa.Text),
        sa.Column("mode", sa.Text, nullable=False, server_default="in_person"),
        sa.Column("status", sa.Text, nullable=False, server_default="scheduled"),
        sa.Column("package_id", sa.Integer, sa.ForeignKey("packages.id")),
        sa.Column("notes", sa.Text),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("modified_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            "package_id IS NULL OR status = 'completed'",
            name="ck_sessions_credit_requires_completion",
        ),
        sa.CheckConstraint("end_at IS NULL OR end_at > start_at", name="ck_sessions_window"),
    )
    op.create_index("ix_sessions_client_status", "sessions", ["client_id", "status"])
    op.create_index("ix_sessions_trainer_start", "sessions", ["trainer_id", "start_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("trainer_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Integer, sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("amount", sa.Text, nullable=False),
        sa.Column("currency", sa.Text, nullable=False),
        sa.Column("method", sa.Text, nullable=False, server_default="cash"),
        sa.Column("paid_at", sa.Text, nullable=False),
        sa.Column("note", sa.Text),
        sa.Column("sessions_purchased", sa.Integer),
        sa.Column("related_session_ids", sa.Text),
    )
    op.create_index("ix_payments_trainer_paid", "payments", ["trainer_id", "paid_at"])
    op.create_index("ix_payments_client", "payments", ["client_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("sessions")
    op.drop_table("packages")
    op.drop_table("clients")
