"""Link additional provider use case."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from studyhall.adapter.oauth.cache import PKCEStore
from studyhall.domain.service import IdentityReconciliationService, ProviderRegistry
from studyhall.domain.value import AccountId, AuthProvider, PostedIdentity

from .exchange import redeem_authorization_code


class LinkProviderRequest(BaseModel):
    """Link request from an authenticated account."""

    account_id: str
    provider: str
    code: str
    state: str | None = None
    user: PostedIdentity | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class LinkProviderResponse(BaseModel):
    """The newly linked provider identity."""

    provider: AuthProvider
    provider_user_id: str
    provider_email: str | None
    provider_name: str | None
    linked_at: datetime


class LinkProviderUseCase:
    """Use case for attaching another provider to a signed-in account."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        pkce_store: PKCEStore,
        reconciliation_service: IdentityReconciliationService,
    ) -> None:
        self.provider_registry = provider_registry
        self.pkce_store = pkce_store
        self.reconciliation_service = reconciliation_service

    async def execute(self, request: LinkProviderRequest) -> LinkProviderResponse:
        """Redeem the code, run the conflict check, then link.

        Raises:
            AccountLinkConflictError: If the identity cannot be linked (the
                error carries the conflict report)
        """
        provider = self.provider_registry.parse_provider(request.provider)
        user_info, tokens = await redeem_authorization_code(
            self.provider_registry,
            self.pkce_store,
            provider,
            request.code,
            request.state,
            request.user,
        )

        link = await self.reconciliation_service.link_provider(
            AccountId(UUID(request.account_id)),
            provider,
            user_info,
            tokens,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
        )

        return LinkProviderResponse(
            provider=link.provider,
            provider_user_id=link.provider_user_id,
            provider_email=link.provider_email,
            provider_name=link.provider_name,
            linked_at=link.created_at,
        )
