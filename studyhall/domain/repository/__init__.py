"""Repository interfaces for domain entities."""

from .account import AccountRepository
from .account_settings import AccountSettingsRepository
from .audit_event import AuditEventRepository
from .social_auth_link import SocialAuthLinkRepository
from .unit_of_work import UnitOfWork

__all__ = [
    "AccountRepository",
    "AccountSettingsRepository",
    "AuditEventRepository",
    "SocialAuthLinkRepository",
    "UnitOfWork",
]
