"""Account settings repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from studyhall.domain.model.account_settings import AccountSettings
from studyhall.domain.value import AccountId


class AccountSettingsRepository(ABC):
    """Repository for AccountSettings entity."""

    @abstractmethod
    async def find_by_account_id(
        self, account_id: AccountId
    ) -> Optional[AccountSettings]:
        """Find the settings row of an account.

        Args:
            account_id: Owning account

        Returns:
            Settings if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, settings: AccountSettings) -> AccountSettings:
        """Save account settings.

        Args:
            settings: Settings to save

        Returns:
            The saved settings
        """
        pass
