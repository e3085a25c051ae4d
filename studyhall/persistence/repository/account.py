"""Account repository implementation using PostgreSQL."""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyhall.domain.model.account import Account
from studyhall.domain.repository.account import AccountRepository
from studyhall.domain.value import AccountId
from studyhall.persistence.mappers import (
    account_to_dict,
    row_to_account,
    row_to_social_auth_link,
)
from studyhall.persistence.tables import accounts_table, social_auth_links_table


class PostgresAccountRepository(AccountRepository):
    """PostgreSQL implementation of AccountRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, account_id: AccountId) -> Optional[Account]:
        stmt = select(accounts_table).where(accounts_table.c.id == account_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return await self._with_links(dict(row))

    async def find_by_email(self, email: str) -> Optional[Account]:
        stmt = select(accounts_table).where(accounts_table.c.email == email)
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return await self._with_links(dict(row))

    async def save(self, account: Account) -> Account:
        account_dict = account_to_dict(account)

        exists = await self.session.execute(
            select(accounts_table.c.id).where(accounts_table.c.id == account.id)
        )
        if exists.first():
            account_dict.pop("created_at")
            stmt = (
                accounts_table.update()
                .where(accounts_table.c.id == account.id)
                .values(**account_dict)
            )
        else:
            stmt = accounts_table.insert().values(**account_dict)

        await self.session.execute(stmt)
        await self.session.flush()
        return account

    async def _with_links(self, row: dict[str, Any]) -> Account:
        stmt = (
            select(social_auth_links_table)
            .where(social_auth_links_table.c.account_id == row["id"])
            .order_by(social_auth_links_table.c.created_at)
        )
        result = await self.session.execute(stmt)
        links = [row_to_social_auth_link(dict(r)) for r in result.mappings().all()]
        return row_to_account(row, links)
