"""Unlink provider use cases."""

from uuid import UUID

from pydantic import BaseModel, Field

from studyhall.domain.service import (
    BulkUnlinkResult,
    ProviderRegistry,
    TokenLifecycleManager,
)
from studyhall.domain.value import AccountId, AuthProvider


class UnlinkProviderRequest(BaseModel):
    """Unlink one provider."""

    account_id: str
    provider: str
    ip_address: str | None = None
    user_agent: str | None = None


class UnlinkProviderResponse(BaseModel):
    """Unlink confirmation."""

    provider: AuthProvider
    message: str


class UnlinkProviderUseCase:
    """Use case for removing one provider link."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        token_lifecycle: TokenLifecycleManager,
    ) -> None:
        self.provider_registry = provider_registry
        self.token_lifecycle = token_lifecycle

    async def execute(self, request: UnlinkProviderRequest) -> UnlinkProviderResponse:
        """Unlink the provider.

        Raises:
            NotFoundError: If the provider is not linked
            LastFactorError: If it is the account's last sign-in method
        """
        provider = self.provider_registry.parse_provider(request.provider)
        await self.token_lifecycle.unlink(
            AccountId(UUID(request.account_id)),
            provider,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
        )
        return UnlinkProviderResponse(
            provider=provider,
            message=f"Successfully unlinked {provider.value} account",
        )


class BulkUnlinkRequest(BaseModel):
    """Unlink several providers at once."""

    account_id: str
    providers: list[AuthProvider] = Field(min_length=1)
    ip_address: str | None = None
    user_agent: str | None = None


class BulkUnlinkUseCase:
    """Use case for removing several provider links."""

    def __init__(self, token_lifecycle: TokenLifecycleManager) -> None:
        self.token_lifecycle = token_lifecycle

    async def execute(self, request: BulkUnlinkRequest) -> BulkUnlinkResult:
        """Unlink each provider independently.

        Raises:
            LastFactorError: If the request would remove every sign-in method
        """
        return await self.token_lifecycle.bulk_unlink(
            AccountId(UUID(request.account_id)),
            request.providers,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
        )
