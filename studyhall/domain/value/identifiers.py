"""Strongly typed identifiers for StudyHall domain entities.

Using NewType prevents mixing up different entity IDs.
"""

from typing import NewType
from uuid import UUID

AccountId = NewType("AccountId", UUID)
AccountSettingsId = NewType("AccountSettingsId", UUID)
SocialAuthLinkId = NewType("SocialAuthLinkId", UUID)
AuditEventId = NewType("AuditEventId", UUID)
