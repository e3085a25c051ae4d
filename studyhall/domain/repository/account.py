"""Account repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from studyhall.domain.model.account import Account
from studyhall.domain.value import AccountId


class AccountRepository(ABC):
    """Repository for Account aggregate.

    Accounts are returned with their social auth links eagerly loaded.
    """

    @abstractmethod
    async def find_by_id(self, account_id: AccountId) -> Optional[Account]:
        """Find an account by ID.

        Args:
            account_id: The account's unique identifier

        Returns:
            The account with its links if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Account]:
        """Find an account by email address.

        Args:
            email: Email address (unique across accounts)

        Returns:
            The account with its links if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, account: Account) -> Account:
        """Save an account (create or update).

        Links on the aggregate are not written; use SocialAuthLinkRepository.

        Args:
            account: The account to save

        Returns:
            The saved account
        """
        pass
