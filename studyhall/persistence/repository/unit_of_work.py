"""Unit of work implementation over a SQLAlchemy session."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from studyhall.domain.repository.unit_of_work import UnitOfWork


class PostgresUnitOfWork(UnitOfWork):
    """Transaction scope over the request session.

    Opens a transaction when the session has none. Inside an already
    running transaction it opens a savepoint, so the scope rolls back on
    its own without discarding earlier work of the request.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize unit of work.

        Args:
            session: Session shared with the participating repositories
        """
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self.session.in_transaction():
            async with self.session.begin_nested():
                yield
        else:
            async with self.session.begin():
                yield
