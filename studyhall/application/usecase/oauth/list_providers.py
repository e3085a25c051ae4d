"""Linked provider listing use cases."""

from uuid import UUID

from pydantic import BaseModel

from studyhall.domain.service import (
    LinkedProviderStatus,
    ProviderRegistry,
    TokenLifecycleManager,
)
from studyhall.domain.value import AccountId


class ListProvidersRequest(BaseModel):
    """List linked providers of an account."""

    account_id: str


class ListProvidersResponse(BaseModel):
    """Linked providers, newest first."""

    providers: list[LinkedProviderStatus]


class ListProvidersUseCase:
    """Use case for listing an account's linked providers."""

    def __init__(self, token_lifecycle: TokenLifecycleManager) -> None:
        self.token_lifecycle = token_lifecycle

    async def execute(self, request: ListProvidersRequest) -> ListProvidersResponse:
        providers = await self.token_lifecycle.list_links(
            AccountId(UUID(request.account_id))
        )
        return ListProvidersResponse(providers=providers)


class ProviderStatusRequest(BaseModel):
    """Status of one linked provider."""

    account_id: str
    provider: str


class ProviderStatusUseCase:
    """Use case for a single link's token status."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        token_lifecycle: TokenLifecycleManager,
    ) -> None:
        self.provider_registry = provider_registry
        self.token_lifecycle = token_lifecycle

    async def execute(self, request: ProviderStatusRequest) -> LinkedProviderStatus:
        """Get the link status.

        Raises:
            NotFoundError: If the provider is not linked
        """
        provider = self.provider_registry.parse_provider(request.provider)
        return await self.token_lifecycle.link_status(
            AccountId(UUID(request.account_id)), provider
        )
