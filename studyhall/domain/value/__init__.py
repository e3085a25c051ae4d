"""Domain value objects for StudyHall."""

from studyhall.domain.value.identifiers import (
    AccountId,
    AccountSettingsId,
    AuditEventId,
    SocialAuthLinkId,
)
from studyhall.domain.value.types import (
    AccountRole,
    AccountSummary,
    AuditEventType,
    AuditLogFilter,
    AuthProvider,
    ConflictReport,
    ConflictType,
    EmailDifferentProviderIdDetails,
    EncryptedToken,
    PKCEChallenge,
    PostedIdentity,
    ProviderAlreadyLinkedDetails,
    TokenSet,
    TokenStatus,
    UserInfo,
)

__all__ = [
    # Identifiers
    "AccountId",
    "AccountSettingsId",
    "AuditEventId",
    "SocialAuthLinkId",
    # Types
    "AccountRole",
    "AccountSummary",
    "AuditEventType",
    "AuditLogFilter",
    "AuthProvider",
    "ConflictReport",
    "ConflictType",
    "EmailDifferentProviderIdDetails",
    "EncryptedToken",
    "PKCEChallenge",
    "PostedIdentity",
    "ProviderAlreadyLinkedDetails",
    "TokenSet",
    "TokenStatus",
    "UserInfo",
]
