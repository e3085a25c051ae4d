"""PostgreSQL repository implementations."""

from studyhall.persistence.repository.account import PostgresAccountRepository
from studyhall.persistence.repository.account_settings import (
    PostgresAccountSettingsRepository,
)
from studyhall.persistence.repository.audit_event import PostgresAuditEventRepository
from studyhall.persistence.repository.social_auth_link import (
    PostgresSocialAuthLinkRepository,
)
from studyhall.persistence.repository.unit_of_work import PostgresUnitOfWork

__all__ = [
    "PostgresAccountRepository",
    "PostgresAccountSettingsRepository",
    "PostgresAuditEventRepository",
    "PostgresSocialAuthLinkRepository",
    "PostgresUnitOfWork",
]
