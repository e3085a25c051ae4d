"""Start OAuth authorization use case."""

from datetime import timedelta

import logfire
from pydantic import BaseModel

from studyhall.adapter.oauth.cache import PKCEStore
from studyhall.adapter.oauth.pkce import generate_pkce_challenge
from studyhall.adapter.oauth.state import generate_secure_state
from studyhall.config import AuthSettings
from studyhall.domain.service import ProviderRegistry


class AuthorizeRequest(BaseModel):
    """Start-authorization request."""

    provider: str
    state: str | None = None
    use_pkce: bool = False
    account_id: str | None = None  # Set when an authenticated user links


class AuthorizeResponse(BaseModel):
    """Where to send the user, plus the state the callback must echo."""

    auth_url: str
    state: str
    uses_pkce: bool


class AuthorizeUseCase:
    """Use case for building a provider authorization URL."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        pkce_store: PKCEStore,
        auth_settings: AuthSettings,
    ) -> None:
        """Initialize authorize use case.

        Args:
            provider_registry: Provider registry domain service
            pkce_store: Store for PKCE verifiers keyed by state
            auth_settings: Authentication settings
        """
        self.provider_registry = provider_registry
        self.pkce_store = pkce_store
        self.auth_settings = auth_settings

    async def execute(self, request: AuthorizeRequest) -> AuthorizeResponse:
        """Build the authorization URL.

        PKCE is used when requested and always for providers that require
        it. The verifier is kept server-side under the state for the
        configured TTL.

        Raises:
            UnsupportedProviderError: If the provider is unknown
        """
        provider = self.provider_registry.parse_provider(request.provider)
        state = request.state or generate_secure_state(request.account_id)

        pkce = None
        if request.use_pkce or self.provider_registry.requires_pkce(provider):
            pkce = generate_pkce_challenge()
            self.pkce_store.put(
                state, pkce, ttl=timedelta(seconds=self.auth_settings.pkce_ttl_seconds)
            )

        auth_url = self.provider_registry.build_authorization_url(provider, state, pkce)

        logfire.info(
            "Authorization URL issued",
            provider=provider.value,
            uses_pkce=pkce is not None,
        )
        return AuthorizeResponse(auth_url=auth_url, state=state, uses_pkce=pkce is not None)
