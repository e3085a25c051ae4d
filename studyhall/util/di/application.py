"""Application layer DI providers."""

from dishka import Scope, provide

from studyhall.adapter.oauth.cache import PKCEStore
from studyhall.application.usecase.oauth import (
    AuthorizeUseCase,
    BulkUnlinkUseCase,
    CheckConflictsUseCase,
    CleanupTokensUseCase,
    GetAuditLogsUseCase,
    LinkProviderUseCase,
    ListProvidersUseCase,
    OAuthCallbackUseCase,
    ProviderStatusUseCase,
    RefreshProviderTokensUseCase,
    UnlinkProviderUseCase,
)
from studyhall.config import AuthSettings
from studyhall.domain.service import (
    AuditLog,
    IdentityReconciliationService,
    JWTService,
    ProviderRegistry,
    TokenLifecycleManager,
)
from studyhall.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    scope = Scope.REQUEST

    # Sign-in
    @provide
    def get_authorize_use_case(
        self,
        provider_registry: ProviderRegistry,
        pkce_store: PKCEStore,
        auth_settings: AuthSettings,
    ) -> AuthorizeUseCase:
        """Provide authorize use case."""
        return AuthorizeUseCase(
            provider_registry=provider_registry,
            pkce_store=pkce_store,
            auth_settings=auth_settings,
        )

    @provide
    def get_callback_use_case(
        self,
        provider_registry: ProviderRegistry,
        pkce_store: PKCEStore,
        reconciliation_service: IdentityReconciliationService,
        jwt_service: JWTService,
        audit_log: AuditLog,
    ) -> OAuthCallbackUseCase:
        """Provide OAuth callback use case."""
        return OAuthCallbackUseCase(
            provider_registry=provider_registry,
            pkce_store=pkce_store,
            reconciliation_service=reconciliation_service,
            jwt_service=jwt_service,
            audit_log=audit_log,
        )

    # Linking
    @provide
    def get_link_provider_use_case(
        self,
        provider_registry: ProviderRegistry,
        pkce_store: PKCEStore,
        reconciliation_service: IdentityReconciliationService,
    ) -> LinkProviderUseCase:
        """Provide link provider use case."""
        return LinkProviderUseCase(
            provider_registry=provider_registry,
            pkce_store=pkce_store,
            reconciliation_service=reconciliation_service,
        )

    @provide
    def get_check_conflicts_use_case(
        self,
        provider_registry: ProviderRegistry,
        reconciliation_service: IdentityReconciliationService,
    ) -> CheckConflictsUseCase:
        """Provide conflict check use case."""
        return CheckConflictsUseCase(
            provider_registry=provider_registry,
            reconciliation_service=reconciliation_service,
        )

    # Linked providers and tokens
    @provide
    def get_list_providers_use_case(
        self, token_lifecycle: TokenLifecycleManager
    ) -> ListProvidersUseCase:
        """Provide list providers use case."""
        return ListProvidersUseCase(token_lifecycle=token_lifecycle)

    @provide
    def get_provider_status_use_case(
        self,
        provider_registry: ProviderRegistry,
        token_lifecycle: TokenLifecycleManager,
    ) -> ProviderStatusUseCase:
        """Provide provider status use case."""
        return ProviderStatusUseCase(
            provider_registry=provider_registry, token_lifecycle=token_lifecycle
        )

    @provide
    def get_unlink_provider_use_case(
        self,
        provider_registry: ProviderRegistry,
        token_lifecycle: TokenLifecycleManager,
    ) -> UnlinkProviderUseCase:
        """Provide unlink use case."""
        return UnlinkProviderUseCase(
            provider_registry=provider_registry, token_lifecycle=token_lifecycle
        )

    @provide
    def get_bulk_unlink_use_case(
        self, token_lifecycle: TokenLifecycleManager
    ) -> BulkUnlinkUseCase:
        """Provide bulk unlink use case."""
        return BulkUnlinkUseCase(token_lifecycle=token_lifecycle)

    @provide
    def get_refresh_tokens_use_case(
        self,
        provider_registry: ProviderRegistry,
        token_lifecycle: TokenLifecycleManager,
    ) -> RefreshProviderTokensUseCase:
        """Provide token refresh use case."""
        return RefreshProviderTokensUseCase(
            provider_registry=provider_registry, token_lifecycle=token_lifecycle
        )

    @provide
    def get_cleanup_tokens_use_case(
        self, token_lifecycle: TokenLifecycleManager
    ) -> CleanupTokensUseCase:
        """Provide token cleanup use case."""
        return CleanupTokensUseCase(token_lifecycle=token_lifecycle)

    # Audit
    @provide
    def get_audit_logs_use_case(self, audit_log: AuditLog) -> GetAuditLogsUseCase:
        """Provide audit log query use case."""
        return GetAuditLogsUseCase(audit_log=audit_log)
