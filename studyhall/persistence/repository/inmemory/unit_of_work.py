"""In-memory unit of work for testing."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from studyhall.domain.repository.unit_of_work import UnitOfWork

from .account import InMemoryAccountRepository
from .account_settings import InMemoryAccountSettingsRepository
from .social_auth_link import InMemorySocialAuthLinkRepository


class InMemoryUnitOfWork(UnitOfWork):
    """Snapshot-and-restore transaction over the in-memory repositories.

    Scopes are serialized by a lock. A nested scope in the same task joins
    the outer one; only the outermost scope restores on failure.
    """

    def __init__(
        self,
        account_repository: InMemoryAccountRepository,
        social_auth_link_repository: InMemorySocialAuthLinkRepository,
        account_settings_repository: InMemoryAccountSettingsRepository,
    ) -> None:
        self.account_repository = account_repository
        self.social_auth_link_repository = social_auth_link_repository
        self.account_settings_repository = account_settings_repository
        self._lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None
        self.commits = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        current = asyncio.current_task()
        if self._owner is not None and self._owner is current:
            yield
            return

        async with self._lock:
            self._owner = current
            snapshot = (
                self.account_repository.snapshot(),
                self.social_auth_link_repository.snapshot(),
                self.account_settings_repository.snapshot(),
            )
            try:
                yield
            except BaseException:
                self.account_repository.restore(snapshot[0])
                self.social_auth_link_repository.restore(snapshot[1])
                self.account_settings_repository.restore(snapshot[2])
                self.rollbacks += 1
                raise
            else:
                self.commits += 1
            finally:
                self._owner = None
