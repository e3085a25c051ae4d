"""In-memory account repository for testing."""

from typing import Optional

from studyhall.domain.model.account import Account
from studyhall.domain.repository.account import AccountRepository
from studyhall.domain.value import AccountId

from .social_auth_link import InMemorySocialAuthLinkRepository


class InMemoryAccountRepository(AccountRepository):
    """In-memory implementation of AccountRepository for testing.

    Links are read from the link repository on every lookup, like the SQL
    implementation's eager load.
    """

    def __init__(self, link_repository: InMemorySocialAuthLinkRepository) -> None:
        self._accounts: dict[AccountId, Account] = {}
        self._link_repository = link_repository

    def snapshot(self) -> dict[AccountId, Account]:
        return dict(self._accounts)

    def restore(self, state: dict[AccountId, Account]) -> None:
        self._accounts = dict(state)

    async def find_by_id(self, account_id: AccountId) -> Optional[Account]:
        account = self._accounts.get(account_id)
        if account is None:
            return None
        return await self._with_links(account)

    async def find_by_email(self, email: str) -> Optional[Account]:
        for account in self._accounts.values():
            if account.email == email:
                return await self._with_links(account)
        return None

    async def save(self, account: Account) -> Account:
        self._accounts[account.id] = account.model_copy(update={"social_auth_links": []})
        return account

    async def _with_links(self, account: Account) -> Account:
        links = await self._link_repository.find_all_by_account_id(account.id)
        return account.model_copy(update={"social_auth_links": links})
