"""Domain model entities for StudyHall."""

from studyhall.domain.model.account import UNUSABLE_PASSWORD_PREFIX, Account
from studyhall.domain.model.account_settings import AccountSettings
from studyhall.domain.model.audit_event import SecurityAuditEvent
from studyhall.domain.model.reconciliation import (
    LINKED_TO_EXISTING_EMAIL,
    ConflictDecision,
    ExistingLinkDecision,
    LinkToEmailDecision,
    NewAccountDecision,
    ReconciliationDecision,
    ReconciliationResult,
)
from studyhall.domain.model.social_auth_link import SocialAuthLink

__all__ = [
    "Account",
    "UNUSABLE_PASSWORD_PREFIX",
    "AccountSettings",
    "SecurityAuditEvent",
    "SocialAuthLink",
    # Reconciliation
    "LINKED_TO_EXISTING_EMAIL",
    "ConflictDecision",
    "ExistingLinkDecision",
    "LinkToEmailDecision",
    "NewAccountDecision",
    "ReconciliationDecision",
    "ReconciliationResult",
]
