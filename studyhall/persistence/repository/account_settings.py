"""AccountSettings repository implementation using PostgreSQL."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyhall.domain.model.account_settings import AccountSettings
from studyhall.domain.repository.account_settings import AccountSettingsRepository
from studyhall.domain.value import AccountId
from studyhall.persistence.mappers import (
    account_settings_to_dict,
    row_to_account_settings,
)
from studyhall.persistence.tables import account_settings_table


class PostgresAccountSettingsRepository(AccountSettingsRepository):
    """PostgreSQL implementation of AccountSettingsRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_account_id(
        self, account_id: AccountId
    ) -> Optional[AccountSettings]:
        stmt = select(account_settings_table).where(
            account_settings_table.c.account_id == account_id
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_account_settings(dict(row))

    async def save(self, settings: AccountSettings) -> AccountSettings:
        settings_dict = account_settings_to_dict(settings)

        existing = await self.find_by_account_id(settings.account_id)
        if existing:
            settings_dict.pop("id")
            settings_dict.pop("created_at")
            stmt = (
                account_settings_table.update()
                .where(account_settings_table.c.account_id == settings.account_id)
                .values(**settings_dict)
            )
        else:
            stmt = account_settings_table.insert().values(**settings_dict)

        await self.session.execute(stmt)
        await self.session.flush()
        return settings
