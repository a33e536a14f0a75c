"""SQLAlchemy Core table definitions for the trainerctl database.

Instants are stored as UTC ISO 8601 text, dates as ``YYYY-MM-DD`` text,
and money as decimal text so SQLite never rounds an amount through a float.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

clients = Table(
    "clients",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("trainer_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("email", Text),
    Column("client_user_id", Text),  # end-user account, set by linking
    Column("rate_type", Text, nullable=False, default="package", server_default="package"),
    Column("hourly_rate", Text),
    Column("monthly_rate", Text),
    Column("created_at", Text, nullable=False),
    Column("modified_at", Text, nullable=False),
    CheckConstraint(
        "(rate_type = 'hourly' AND hourly_rate IS NOT NULL AND monthly_rate IS NULL)"
        " OR (rate_type = 'monthly' AND monthly_rate IS NOT NULL AND hourly_rate IS NULL)"
        " OR (rate_type = 'package' AND hourly_rate IS NULL AND monthly_rate IS NULL)",
        name="ck_clients_rate_variant",
    ),
)

packages = Table(
    "packages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("client_id", Integer, ForeignKey("clients.id"), nullable=False),
    Column("name", Text),
    Column("price", Text),
    Column("sessions_total", Integer, nullable=False),
    Column("sessions_used", Integer, nullable=False, default=0, server_default="0"),
    Column("status", Text, nullable=False, default="active", server_default="active"),
    Column("starts_on", Text),
    Column("expires_on", Text),
    Column("created_at", Text, nullable=False),
    CheckConstraint(
        "sessions_used >= 0 AND sessions_used <= sessions_total",
        name="ck_packages_credit_bounds",
    ),
)

sessions = Table(
    "sessions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("trainer_id", Text, nullable=False),
    Column("client_id", Integer, ForeignKey("clients.id"), nullable=False),
    Column("title", Text),
    Column("start_at", Text, nullable=False),
    Column("end_at", Text),
    Column("mode", Text, nullable=False, default="in_person", server_default="in_person"),
    Column("status", Text, nullable=False, default="scheduled", server_default="scheduled"),
    Column("package_id", Integer, ForeignKey("packages.id")),
    Column("notes", Text),
    Column("created_at", Text, nullable=False),
    Column("modified_at", Text, nullable=False),
    CheckConstraint(
        "package_id IS NULL OR status = 'completed'",
        name="ck_sessions_credit_requires_completion",
    ),
    CheckConstraint("end_at IS NULL OR end_at > start_at", name="ck_sessions_window"),
)

payments = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("trainer_id", Text, nullable=False),
    Column("client_id", Integer, ForeignKey("clients.id"), nullable=False),
    Column("amount", Text, nullable=False),
    Column("currency", Text, nullable=False),
    Column("method", Text, nullable=False, default="cash", server_default="cash"),
    Column("paid_at", Text, nullable=False),
    Column("note", Text),
    Column("sessions_purchased", Integer),
    Column("related_session_ids", Text),  # JSON array
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_clients_trainer", clients.c.trainer_id)
Index("ix_clients_email", clients.c.email)
Index("ix_clients_user", clients.c.client_user_id)
Index("ix_packages_client_status", packages.c.client_id, packages.c.status)
Index("ix_sessions_client_status", sessions.c.client_id, sessions.c.status)
Index("ix_sessions_trainer_start", sessions.c.trainer_id, sessions.c.start_at)
Index("ix_payments_trainer_paid", payments.c.trainer_id, payments.c.paid_at)
Index("ix_payments_client", payments.c.client_id)

TABLES: dict[str, Table] = {
    "client": clients,
    "package": packages,
    "session": sessions,
    "payment": payments,
}
