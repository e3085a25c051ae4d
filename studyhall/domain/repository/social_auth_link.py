"""Social auth link repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from studyhall.domain.model.social_auth_link import SocialAuthLink
from studyhall.domain.value import (
    AccountId,
    AuthProvider,
    EncryptedToken,
    SocialAuthLinkId,
)


class SocialAuthLinkRepository(ABC):
    """Repository for SocialAuthLink entity.

    Implementations must enforce uniqueness of (provider, provider_user_id)
    at the storage level and raise DuplicateSocialAuthLinkError on conflict.
    """

    @abstractmethod
    async def find_by_id(self, link_id: SocialAuthLinkId) -> Optional[SocialAuthLink]:
        """Find a link by ID.

        Args:
            link_id: The link's unique identifier

        Returns:
            The link if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_provider(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Optional[SocialAuthLink]:
        """Find the link claiming a provider identity.

        Args:
            provider: The authentication provider
            provider_user_id: The user's ID on that provider

        Returns:
            The link if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_account_and_provider(
        self, account_id: AccountId, provider: AuthProvider
    ) -> Optional[SocialAuthLink]:
        """Find an account's link for a provider.

        Args:
            account_id: Owning account
            provider: The authentication provider

        Returns:
            The link if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[SocialAuthLink]:
        """Get all links owned by an account, oldest first.

        Args:
            account_id: Owning account

        Returns:
            List of links (may be empty)
        """
        pass

    @abstractmethod
    async def find_expired(self, now: datetime) -> list[SocialAuthLink]:
        """Get all links whose token expiry is in the past.

        Args:
            now: Reference time

        Returns:
            Links with token_expires_at <= now
        """
        pass

    @abstractmethod
    async def save(self, link: SocialAuthLink) -> SocialAuthLink:
        """Create a new link.

        Args:
            link: The link to create

        Returns:
            The created link

        Raises:
            DuplicateSocialAuthLinkError: If the provider identity is taken
        """
        pass

    @abstractmethod
    async def update_tokens(
        self,
        link_id: SocialAuthLinkId,
        access_token_encrypted: EncryptedToken,
        refresh_token_encrypted: Optional[EncryptedToken],
        token_expires_at: Optional[datetime],
    ) -> SocialAuthLink:
        """Replace the stored tokens of a link.

        Args:
            link_id: Link to update
            access_token_encrypted: New access token ciphertext
            refresh_token_encrypted: New refresh token ciphertext
            token_expires_at: New expiry

        Returns:
            The updated link

        Raises:
            NotFoundError: If the link does not exist
        """
        pass

    @abstractmethod
    async def delete(self, link_id: SocialAuthLinkId) -> None:
        """Delete a link.

        Args:
            link_id: The link to delete
        """
        pass
