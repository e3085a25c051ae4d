"""In-memory repository implementations for testing."""

from .account import InMemoryAccountRepository
from .account_settings import InMemoryAccountSettingsRepository
from .audit_event import InMemoryAuditEventRepository
from .social_auth_link import InMemorySocialAuthLinkRepository
from .unit_of_work import InMemoryUnitOfWork

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryAccountSettingsRepository",
    "InMemoryAuditEventRepository",
    "InMemorySocialAuthLinkRepository",
    "InMemoryUnitOfWork",
]
