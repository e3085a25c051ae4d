"""Domain layer DI providers."""

from datetime import timedelta

from dishka import Scope, provide

from studyhall.config import AuthSettings
from studyhall.domain.repository import (
    AccountRepository,
    AccountSettingsRepository,
    AuditEventRepository,
    SocialAuthLinkRepository,
    UnitOfWork,
)
from studyhall.domain.service import (
    AuditLog,
    IdentityReconciliationService,
    JWTService,
    ProviderClient,
    ProviderRegistry,
    TokenCipherService,
    TokenLifecycleManager,
)
from studyhall.domain.value import AuthProvider
from studyhall.util.cipher import FernetCipher
from studyhall.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_provider_registry(
        self,
        oauth_clients: dict[AuthProvider, ProviderClient],
        auth_settings: AuthSettings,
    ) -> ProviderRegistry:
        """Provide provider registry over all configured OAuth clients."""
        return ProviderRegistry(
            clients=oauth_clients,
            timeout_seconds=auth_settings.provider_timeout_seconds,
        )

    @provide
    def get_token_cipher_service(self, cipher: FernetCipher) -> TokenCipherService:
        """Provide provider-token cipher service."""
        return TokenCipherService(cipher=cipher)

    @provide
    def get_jwt_service(self, auth_settings: AuthSettings) -> JWTService:
        """Provide JWT session domain service."""
        return JWTService(auth_settings=auth_settings)

    @provide
    def get_audit_log(self, audit_event_repository: AuditEventRepository) -> AuditLog:
        """Provide security audit log."""
        return AuditLog(audit_event_repository=audit_event_repository)

    @provide
    def get_identity_reconciliation_service(
        self,
        account_repository: AccountRepository,
        social_auth_link_repository: SocialAuthLinkRepository,
        account_settings_repository: AccountSettingsRepository,
        unit_of_work: UnitOfWork,
        token_cipher: TokenCipherService,
        audit_log: AuditLog,
    ) -> IdentityReconciliationService:
        """Provide identity reconciliation domain service."""
        return IdentityReconciliationService(
            account_repository=account_repository,
            social_auth_link_repository=social_auth_link_repository,
            account_settings_repository=account_settings_repository,
            unit_of_work=unit_of_work,
            token_cipher=token_cipher,
            audit_log=audit_log,
        )

    @provide
    def get_token_lifecycle_manager(
        self,
        social_auth_link_repository: SocialAuthLinkRepository,
        account_repository: AccountRepository,
        unit_of_work: UnitOfWork,
        provider_registry: ProviderRegistry,
        token_cipher: TokenCipherService,
        audit_log: AuditLog,
        auth_settings: AuthSettings,
    ) -> TokenLifecycleManager:
        """Provide token lifecycle domain service."""
        return TokenLifecycleManager(
            social_auth_link_repository=social_auth_link_repository,
            account_repository=account_repository,
            unit_of_work=unit_of_work,
            provider_registry=provider_registry,
            token_cipher=token_cipher,
            audit_log=audit_log,
            refresh_window=timedelta(seconds=auth_settings.refresh_window_seconds),
        )
