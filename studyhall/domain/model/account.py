"""Account aggregate root."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from studyhall.domain.model.common import DomainModel
from studyhall.domain.model.social_auth_link import SocialAuthLink
from studyhall.domain.value import AccountId, AccountRole, AuthProvider

# Password hashes starting with this prefix can never match a password
UNUSABLE_PASSWORD_PREFIX = "!"


class Account(DomainModel):
    """Platform account (parent or child).

    ``social_auth_links`` is populated by repositories on read. An account
    must always keep at least one authentication factor: a usable password
    hash or a social auth link.

    Accounts created through OAuth receive a random unusable placeholder
    hash, so a secret exists for the row without enabling password login.
    """

    id: AccountId
    email: str
    password_hash: Optional[str] = None
    role: AccountRole = AccountRole.PARENT
    is_email_verified: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    social_auth_links: list[SocialAuthLink] = Field(default_factory=list)

    @property
    def has_password(self) -> bool:
        """Whether the account holds a usable first-party credential."""
        return bool(self.password_hash) and not self.password_hash.startswith(
            UNUSABLE_PASSWORD_PREFIX
        )

    def link_for(self, provider: AuthProvider) -> Optional[SocialAuthLink]:
        """Return this account's link for a provider, if any."""
        for link in self.social_auth_links:
            if link.provider == provider:
                return link
        return None

    def remaining_factors_without(self, providers: set[AuthProvider]) -> int:
        """Count authentication factors left after removing providers.

        Args:
            providers: Providers that would be unlinked

        Returns:
            Number of remaining factors (a usable password counts as one)
        """
        remaining_links = [
            link for link in self.social_auth_links if link.provider not in providers
        ]
        return int(self.has_password) + len(remaining_links)
