"""Provider registry domain service."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import TypeVar

import logfire

from studyhall.domain.error import (
    TokenExchangeError,
    UnsupportedProviderError,
    UserInfoError,
)
from studyhall.domain.value import (
    AuthProvider,
    PKCEChallenge,
    PostedIdentity,
    TokenSet,
    UserInfo,
)

from .base import Service

T = TypeVar("T")


class ProviderClient(ABC):
    """OAuth 2.0 client interface, one implementation per provider."""

    provider: AuthProvider
    requires_pkce: bool = False

    @abstractmethod
    def build_authorization_url(
        self, state: str, pkce: PKCEChallenge | None = None
    ) -> str:
        """Compose the provider's authorize URL.

        Args:
            state: State parameter for CSRF protection
            pkce: PKCE challenge to bind the code exchange to

        Returns:
            Authorization URL to redirect the user to
        """

    @abstractmethod
    async def exchange_code(
        self, code: str, code_verifier: str | None = None
    ) -> TokenSet:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback
            code_verifier: PKCE verifier, if the flow used PKCE

        Returns:
            Token set with absolute expiry

        Raises:
            TokenExchangeError: On network or non-2xx failure
        """

    @abstractmethod
    async def fetch_user_info(self, access_token: str) -> UserInfo:
        """Fetch and normalize the provider profile.

        Raises:
            UserInfoError: On network or non-2xx failure
            UserInfoUnsupportedError: If the provider has no profile endpoint
        """

    @abstractmethod
    async def refresh_tokens(self, refresh_token: str) -> TokenSet:
        """Obtain fresh tokens with a refresh token.

        Raises:
            TokenExchangeError: On network or non-2xx failure
        """

    async def resolve_identity(
        self, tokens: TokenSet, posted: PostedIdentity | None = None
    ) -> UserInfo:
        """Determine who signed in after a successful exchange.

        Providers with a profile endpoint fetch it; providers that deliver
        identity with the token response override this.

        Args:
            tokens: Tokens from the code exchange
            posted: Identity fields the provider posted to the callback

        Returns:
            Normalized user info
        """
        return await self.fetch_user_info(tokens.access_token)


class ProviderRegistry(Service):
    """Domain service routing OAuth operations to per-provider clients.

    Every outbound call is bounded by ``timeout_seconds``. A timeout is
    reported exactly like a network error.
    """

    def __init__(
        self,
        clients: dict[AuthProvider, ProviderClient],
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize registry.

        Args:
            clients: Map of provider to client implementation
            timeout_seconds: Caller-side timeout for provider calls
        """
        self.clients = clients
        self.timeout_seconds = timeout_seconds

    def parse_provider(self, provider: AuthProvider | str) -> AuthProvider:
        """Resolve a provider key, rejecting unknown or unconfigured ones.

        Raises:
            UnsupportedProviderError: If the provider is not registered
        """
        try:
            resolved = AuthProvider(provider)
        except ValueError:
            raise UnsupportedProviderError(str(provider))
        if resolved not in self.clients:
            raise UnsupportedProviderError(resolved.value)
        return resolved

    def client_for(self, provider: AuthProvider | str) -> ProviderClient:
        """Get the client for a provider."""
        return self.clients[self.parse_provider(provider)]

    def requires_pkce(self, provider: AuthProvider | str) -> bool:
        """Whether the provider refuses authorization without PKCE."""
        return self.client_for(provider).requires_pkce

    def build_authorization_url(
        self,
        provider: AuthProvider | str,
        state: str,
        pkce: PKCEChallenge | None = None,
    ) -> str:
        """Build the authorize URL for a provider.

        Raises:
            UnsupportedProviderError: If the provider is not registered
            ValueError: If the provider requires PKCE and none was given
        """
        client = self.client_for(provider)
        if client.requires_pkce and pkce is None:
            raise ValueError(f"{client.provider.value} requires PKCE")
        return client.build_authorization_url(state, pkce)

    async def exchange_code_for_tokens(
        self,
        provider: AuthProvider | str,
        code: str,
        code_verifier: str | None = None,
    ) -> TokenSet:
        """Exchange an authorization code for tokens."""
        client = self.client_for(provider)
        with logfire.span(
            "provider_registry.exchange_code",
            provider=client.provider.value,
            uses_pkce=code_verifier is not None,
        ):
            return await self._bounded(
                client.exchange_code(code, code_verifier),
                TokenExchangeError(client.provider.value, "Request timed out"),
            )

    async def fetch_user_info(
        self, provider: AuthProvider | str, access_token: str
    ) -> UserInfo:
        """Fetch the normalized provider profile."""
        client = self.client_for(provider)
        with logfire.span(
            "provider_registry.fetch_user_info", provider=client.provider.value
        ):
            return await self._bounded(
                client.fetch_user_info(access_token),
                UserInfoError(client.provider.value, "Request timed out"),
            )

    async def resolve_identity(
        self,
        provider: AuthProvider | str,
        tokens: TokenSet,
        posted: PostedIdentity | None = None,
    ) -> UserInfo:
        """Determine the provider identity behind a fresh token set."""
        client = self.client_for(provider)
        with logfire.span(
            "provider_registry.resolve_identity", provider=client.provider.value
        ):
            return await self._bounded(
                client.resolve_identity(tokens, posted),
                UserInfoError(client.provider.value, "Request timed out"),
            )

    async def refresh_tokens(
        self, provider: AuthProvider | str, refresh_token: str
    ) -> TokenSet:
        """Refresh provider tokens."""
        client = self.client_for(provider)
        with logfire.span(
            "provider_registry.refresh_tokens", provider=client.provider.value
        ):
            return await self._bounded(
                client.refresh_tokens(refresh_token),
                TokenExchangeError(client.provider.value, "Request timed out"),
            )

    async def _bounded(self, call: Awaitable[T], on_timeout: Exception) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logfire.warn(
                "Provider call timed out",
                timeout_seconds=self.timeout_seconds,
                error_type=type(on_timeout).__name__,
            )
            raise on_timeout
