"""Mock persistence providers for testing."""

from dishka import Scope, provide

from studyhall.domain.repository import (
    AccountRepository,
    AccountSettingsRepository,
    AuditEventRepository,
    SocialAuthLinkRepository,
    UnitOfWork,
)
from studyhall.persistence.repository.inmemory import (
    InMemoryAccountRepository,
    InMemoryAccountSettingsRepository,
    InMemoryAuditEventRepository,
    InMemorySocialAuthLinkRepository,
    InMemoryUnitOfWork,
)
from studyhall.util.di.infrastructure.persistence import PersistenceProvider


class MockPersistenceProvider(PersistenceProvider):
    """Mock persistence provider using in-memory repositories.

    Uses APP scope so state survives across requests made against one
    container; each test builds its own container, which keeps tests
    isolated.
    """

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_social_auth_link_repository(self) -> InMemorySocialAuthLinkRepository:
        """Provide in-memory social auth link repository."""
        return InMemorySocialAuthLinkRepository()

    @provide(scope=Scope.APP)
    def get_account_repository(
        self, link_repository: InMemorySocialAuthLinkRepository
    ) -> InMemoryAccountRepository:
        """Provide in-memory account repository."""
        return InMemoryAccountRepository(link_repository)

    @provide(scope=Scope.APP)
    def get_account_settings_repository(self) -> InMemoryAccountSettingsRepository:
        """Provide in-memory account settings repository."""
        return InMemoryAccountSettingsRepository()

    @provide(scope=Scope.APP)
    def get_audit_event_repository(self) -> InMemoryAuditEventRepository:
        """Provide in-memory audit event repository."""
        return InMemoryAuditEventRepository()

    @provide(scope=Scope.APP)
    def get_unit_of_work(
        self,
        account_repository: InMemoryAccountRepository,
        link_repository: InMemorySocialAuthLinkRepository,
        settings_repository: InMemoryAccountSettingsRepository,
    ) -> InMemoryUnitOfWork:
        """Provide unit of work over the in-memory repositories."""
        return InMemoryUnitOfWork(account_repository, link_repository, settings_repository)

    @provide(scope=Scope.APP)
    def as_account_repository(
        self, repository: InMemoryAccountRepository
    ) -> AccountRepository:
        return repository

    @provide(scope=Scope.APP)
    def as_social_auth_link_repository(
        self, repository: InMemorySocialAuthLinkRepository
    ) -> SocialAuthLinkRepository:
        return repository

    @provide(scope=Scope.APP)
    def as_account_settings_repository(
        self, repository: InMemoryAccountSettingsRepository
    ) -> AccountSettingsRepository:
        return repository

    @provide(scope=Scope.APP)
    def as_audit_event_repository(
        self, repository: InMemoryAuditEventRepository
    ) -> AuditEventRepository:
        return repository

    @provide(scope=Scope.APP)
    def as_unit_of_work(self, unit_of_work: InMemoryUnitOfWork) -> UnitOfWork:
        return unit_of_work
