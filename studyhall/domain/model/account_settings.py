"""Per-account settings entity."""

from datetime import datetime, timezone

from pydantic import Field

from studyhall.domain.model.common import DomainModel
from studyhall.domain.value import AccountId, AccountSettingsId


class AccountSettings(DomainModel):
    """Default settings row created alongside every new account."""

    id: AccountSettingsId
    account_id: AccountId
    theme: str = "light"
    language: str = "en"
    email_notifications: bool = True
    weekly_progress_reports: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
