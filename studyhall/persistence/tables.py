"""SQLAlchemy table definitions for StudyHall authentication.

Column types are portable so the same metadata backs PostgreSQL in
production and SQLite in the integration tests. They match the schema
defined in Alembic migrations.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects import postgresql

metadata = MetaData()

# ============================================================================
# ACCOUNTS TABLE
# ============================================================================
accounts_table = Table(
    "accounts",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=True),
    Column("role", String(20), nullable=False),  # 'PARENT', 'CHILD'
    Column("is_email_verified", Boolean, nullable=False, default=False),
    Column("first_name", String(255), nullable=True),
    Column("last_name", String(255), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

# ============================================================================
# ACCOUNT SETTINGS TABLE
# ============================================================================
account_settings_table = Table(
    "account_settings",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("theme", String(20), nullable=False),
    Column("language", String(10), nullable=False),
    Column("email_notifications", Boolean, nullable=False),
    Column("weekly_progress_reports", Boolean, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

# ============================================================================
# SOCIAL AUTH LINKS TABLE (one row per linked provider identity)
# ============================================================================
social_auth_links_table = Table(
    "social_auth_links",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("provider", String(20), nullable=False),  # 'google', 'apple', 'instagram'
    Column("provider_user_id", String(255), nullable=False),
    Column("provider_email", String(255), nullable=True),
    Column("provider_name", String(255), nullable=True),
    Column("access_token_encrypted", Text, nullable=False),
    Column("refresh_token_encrypted", Text, nullable=True),
    Column("token_expires_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("provider", "provider_user_id", name="uq_provider_identity"),
)

Index("idx_social_auth_links_account_id", social_auth_links_table.c.account_id)
Index(
    "idx_social_auth_links_token_expires_at",
    social_auth_links_table.c.token_expires_at,
)

# ============================================================================
# SECURITY AUDIT EVENTS TABLE (append-only)
# ============================================================================
security_audit_events_table = Table(
    "security_audit_events",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("event_type", String(30), nullable=False),
    # No foreign key: events outlive the rows they describe
    Column("account_id", Uuid, nullable=True),
    Column(
        "details",
        JSON().with_variant(postgresql.JSONB(), "postgresql"),
        nullable=False,
    ),
    Column("ip_address", String(64), nullable=True),
    Column("user_agent", Text, nullable=True),
    Column("timestamp", DateTime(timezone=True), nullable=False),
)

Index(
    "idx_security_audit_events_account_timestamp",
    security_audit_events_table.c.account_id,
    security_audit_events_table.c.timestamp,
)
Index("idx_security_audit_events_timestamp", security_audit_events_table.c.timestamp)
