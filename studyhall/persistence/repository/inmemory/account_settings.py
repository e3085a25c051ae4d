"""In-memory account settings repository for testing."""

from typing import Optional

from studyhall.domain.model.account_settings import AccountSettings
from studyhall.domain.repository.account_settings import AccountSettingsRepository
from studyhall.domain.value import AccountId


class InMemoryAccountSettingsRepository(AccountSettingsRepository):
    """In-memory implementation of AccountSettingsRepository for testing."""

    def __init__(self) -> None:
        self._settings: dict[AccountId, AccountSettings] = {}

    def snapshot(self) -> dict[AccountId, AccountSettings]:
        return dict(self._settings)

    def restore(self, state: dict[AccountId, AccountSettings]) -> None:
        self._settings = dict(state)

    async def find_by_account_id(
        self, account_id: AccountId
    ) -> Optional[AccountSettings]:
        return self._settings.get(account_id)

    async def save(self, settings: AccountSettings) -> AccountSettings:
        self._settings[settings.account_id] = settings
        return settings
