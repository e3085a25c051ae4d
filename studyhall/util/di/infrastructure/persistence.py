"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

import logfire
from dishka import Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from studyhall.config import Settings
from studyhall.domain.repository import (
    AccountRepository,
    AccountSettingsRepository,
    AuditEventRepository,
    SocialAuthLinkRepository,
    UnitOfWork,
)
from studyhall.persistence.database import create_engine, create_session_factory
from studyhall.persistence.repository import (
    PostgresAccountRepository,
    PostgresAccountSettingsRepository,
    PostgresAuditEventRepository,
    PostgresSocialAuthLinkRepository,
    PostgresUnitOfWork,
)
from studyhall.util.di.base import ProviderBase
from studyhall.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_engine(self, settings: Settings) -> AsyncEngine:
        """Provide database engine."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        return engine

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    @provide(scope=Scope.REQUEST)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide database session for request scope.

        The session is automatically committed at the end of the request
        if no exception occurred, or rolled back if an exception was raised.
        """
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                logfire.warn("Session rollback", error=str(e))
                await session.rollback()
                raise

    @provide(scope=Scope.REQUEST)
    def get_account_repository(self, session: AsyncSession) -> AccountRepository:
        """Provide Account repository."""
        return PostgresAccountRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_social_auth_link_repository(
        self, session: AsyncSession
    ) -> SocialAuthLinkRepository:
        """Provide SocialAuthLink repository."""
        return PostgresSocialAuthLinkRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_account_settings_repository(
        self, session: AsyncSession
    ) -> AccountSettingsRepository:
        """Provide AccountSettings repository."""
        return PostgresAccountSettingsRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_unit_of_work(self, session: AsyncSession) -> UnitOfWork:
        """Provide unit of work over the request session."""
        return PostgresUnitOfWork(session)

    @provide(scope=Scope.APP)
    def get_audit_event_repository(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AuditEventRepository:
        """Provide audit repository, which writes outside the request session."""
        return PostgresAuditEventRepository(session_factory)
