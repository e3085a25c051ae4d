"""SocialAuthLink repository implementation using PostgreSQL."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studyhall.domain.error import DuplicateSocialAuthLinkError, NotFoundError
from studyhall.domain.model.social_auth_link import SocialAuthLink
from studyhall.domain.repository.social_auth_link import SocialAuthLinkRepository
from studyhall.domain.value import (
    AccountId,
    AuthProvider,
    EncryptedToken,
    SocialAuthLinkId,
)
from studyhall.persistence.mappers import (
    row_to_social_auth_link,
    social_auth_link_to_dict,
)
from studyhall.persistence.tables import social_auth_links_table


class PostgresSocialAuthLinkRepository(SocialAuthLinkRepository):
    """PostgreSQL implementation of SocialAuthLinkRepository.

    Uniqueness of the provider identity relies on the ``uq_provider_identity``
    constraint, so two concurrent callbacks cannot both claim it.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, link_id: SocialAuthLinkId) -> Optional[SocialAuthLink]:
        stmt = select(social_auth_links_table).where(
            social_auth_links_table.c.id == link_id
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_social_auth_link(dict(row))

    async def find_by_provider(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Optional[SocialAuthLink]:
        stmt = select(social_auth_links_table).where(
            social_auth_links_table.c.provider == provider.value,
            social_auth_links_table.c.provider_user_id == provider_user_id,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_social_auth_link(dict(row))

    async def find_by_account_and_provider(
        self, account_id: AccountId, provider: AuthProvider
    ) -> Optional[SocialAuthLink]:
        stmt = select(social_auth_links_table).where(
            social_auth_links_table.c.account_id == account_id,
            social_auth_links_table.c.provider == provider.value,
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_social_auth_link(dict(row))

    async def find_all_by_account_id(
        self, account_id: AccountId
    ) -> list[SocialAuthLink]:
        stmt = (
            select(social_auth_links_table)
            .where(social_auth_links_table.c.account_id == account_id)
            .order_by(social_auth_links_table.c.created_at)
        )
        result = await self.session.execute(stmt)
        return [row_to_social_auth_link(dict(row)) for row in result.mappings().all()]

    async def find_expired(self, now: datetime) -> list[SocialAuthLink]:
        stmt = (
            select(social_auth_links_table)
            .where(
                social_auth_links_table.c.token_expires_at.is_not(None),
                social_auth_links_table.c.token_expires_at <= now,
            )
            .order_by(social_auth_links_table.c.token_expires_at)
        )
        result = await self.session.execute(stmt)
        return [row_to_social_auth_link(dict(row)) for row in result.mappings().all()]

    async def save(self, link: SocialAuthLink) -> SocialAuthLink:
        stmt = social_auth_links_table.insert().values(**social_auth_link_to_dict(link))
        try:
            await self.session.execute(stmt)
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateSocialAuthLinkError(
                link.provider.value, link.provider_user_id
            ) from e
        return link

    async def update_tokens(
        self,
        link_id: SocialAuthLinkId,
        access_token_encrypted: EncryptedToken,
        refresh_token_encrypted: Optional[EncryptedToken],
        token_expires_at: Optional[datetime],
    ) -> SocialAuthLink:
        stmt = (
            social_auth_links_table.update()
            .where(social_auth_links_table.c.id == link_id)
            .values(
                access_token_encrypted=access_token_encrypted.root,
                refresh_token_encrypted=(
                    refresh_token_encrypted.root if refresh_token_encrypted else None
                ),
                token_expires_at=token_expires_at,
                updated_at=datetime.now(timezone.utc),
            )
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("Social auth link", str(link_id))
        await self.session.flush()

        updated = await self.find_by_id(link_id)
        if updated is None:
            raise NotFoundError("Social auth link", str(link_id))
        return updated

    async def delete(self, link_id: SocialAuthLinkId) -> None:
        stmt = social_auth_links_table.delete().where(
            social_auth_links_table.c.id == link_id
        )
        await self.session.execute(stmt)
        await self.session.flush()
