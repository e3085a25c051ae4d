"""On-demand provider token refresh use case."""

from uuid import UUID

from pydantic import BaseModel

from studyhall.domain.service import (
    LinkedProviderStatus,
    ProviderRegistry,
    TokenLifecycleManager,
)
from studyhall.domain.value import AccountId


class RefreshProviderTokensRequest(BaseModel):
    """Refresh the tokens of one linked provider."""

    account_id: str
    provider: str


class RefreshProviderTokensUseCase:
    """Use case for refreshing one link's tokens."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        token_lifecycle: TokenLifecycleManager,
    ) -> None:
        self.provider_registry = provider_registry
        self.token_lifecycle = token_lifecycle

    async def execute(
        self, request: RefreshProviderTokensRequest
    ) -> LinkedProviderStatus:
        """Refresh and store the link's tokens.

        Raises:
            NotFoundError: If the provider is not linked or has no refresh token
            DecryptionError: If the stored refresh token is unreadable
            TokenExchangeError: If the provider rejects the refresh
        """
        provider = self.provider_registry.parse_provider(request.provider)
        return await self.token_lifecycle.refresh_for_account(
            AccountId(UUID(request.account_id)), provider
        )
