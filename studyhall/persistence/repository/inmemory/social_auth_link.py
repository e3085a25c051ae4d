"""In-memory social auth link repository for testing."""

from datetime import datetime, timezone
from typing import Optional

from studyhall.domain.error import DuplicateSocialAuthLinkError, NotFoundError
from studyhall.domain.model.social_auth_link import SocialAuthLink
from studyhall.domain.repository.social_auth_link import SocialAuthLinkRepository
from studyhall.domain.value import (
    AccountId,
    AuthProvider,
    EncryptedToken,
    SocialAuthLinkId,
)


class InMemorySocialAuthLinkRepository(SocialAuthLinkRepository):
    """In-memory implementation of SocialAuthLinkRepository for testing."""

    def __init__(self) -> None:
        self._links: dict[SocialAuthLinkId, SocialAuthLink] = {}

    def snapshot(self) -> dict[SocialAuthLinkId, SocialAuthLink]:
        return dict(self._links)

    def restore(self, state: dict[SocialAuthLinkId, SocialAuthLink]) -> None:
        self._links = dict(state)

    async def find_by_id(self, link_id: SocialAuthLinkId) -> Optional[SocialAuthLink]:
        return self._links.get(link_id)

    async def find_by_provider(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Optional[SocialAuthLink]:
        for link in self._links.values():
            if link.provider == provider and link.provider_user_id == provider_user_id:
                return link
        return None

    async def find_by_account_and_provider(
        self, account_id: AccountId, provider: AuthProvider
    ) -> Optional[SocialAuthLink]:
        for link in self._links.values():
            if link.account_id == account_id and link.provider == provider:
                return link
        return None

    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[SocialAuthLink]:
        matches = [link for link in self._links.values() if link.account_id == account_id]
        matches.sort(key=lambda link: link.created_at)
        return matches

    async def find_expired(self, now: datetime) -> list[SocialAuthLink]:
        expired = [
            link
            for link in self._links.values()
            if link.token_expires_at is not None and link.token_expires_at <= now
        ]
        expired.sort(key=lambda link: link.token_expires_at)
        return expired

    async def save(self, link: SocialAuthLink) -> SocialAuthLink:
        existing = await self.find_by_provider(link.provider, link.provider_user_id)
        if existing and existing.id != link.id:
            raise DuplicateSocialAuthLinkError(
                link.provider.value, link.provider_user_id
            )
        self._links[link.id] = link
        return link

    async def update_tokens(
        self,
        link_id: SocialAuthLinkId,
        access_token_encrypted: EncryptedToken,
        refresh_token_encrypted: Optional[EncryptedToken],
        token_expires_at: Optional[datetime],
    ) -> SocialAuthLink:
        link = self._links.get(link_id)
        if link is None:
            raise NotFoundError("Social auth link", str(link_id))

        updated = link.model_copy(
            update={
                "access_token_encrypted": access_token_encrypted,
                "refresh_token_encrypted": refresh_token_encrypted,
                "token_expires_at": token_expires_at,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self._links[link_id] = updated
        return updated

    async def delete(self, link_id: SocialAuthLinkId) -> None:
        self._links.pop(link_id, None)
