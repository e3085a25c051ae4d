"""Unit of work interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class UnitOfWork(ABC):
    """Atomic scope over the account and link repositories.

    Usage:
        async with unit_of_work.transaction():
            ...  # all writes commit together or roll back together
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open an atomic scope.

        Any exception raised inside the scope rolls back every write made
        through the participating repositories and is re-raised.
        """
        pass
