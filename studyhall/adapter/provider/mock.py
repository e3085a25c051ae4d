"""In-process provider client for tests and local development."""

from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from studyhall.domain.error import TokenExchangeError, UserInfoError
from studyhall.domain.service.provider_registry import ProviderClient
from studyhall.domain.value import AuthProvider, PKCEChallenge, TokenSet, UserInfo


class MockProviderClient(ProviderClient):
    """Provider client that never touches the network.

    Authorization codes are registered with ``register``. Exchanging a code
    issues tokens bound to its identity. Refresh tokens listed in
    ``failing_refresh_tokens`` are rejected like a revoked grant.
    """

    def __init__(
        self,
        provider: AuthProvider,
        requires_pkce: bool = False,
        token_lifetime: timedelta | None = timedelta(hours=1),
    ) -> None:
        """Initialize mock client.

        Args:
            provider: Provider this client impersonates
            requires_pkce: Whether authorization demands PKCE
            token_lifetime: Lifetime of issued access tokens, None for none
        """
        self.provider = provider
        self.requires_pkce = requires_pkce
        self.token_lifetime = token_lifetime
        self.identities: dict[str, UserInfo] = {}
        self.failing_refresh_tokens: set[str] = set()
        self.exchanges: list[tuple[str, str | None]] = []
        self.refreshes: list[str] = []
        self._profiles: dict[str, UserInfo] = {}
        self._counter = 0

    def register(self, code: str, user_info: UserInfo) -> None:
        """Make an authorization code resolve to an identity."""
        self.identities[code] = user_info

    def build_authorization_url(
        self, state: str, pkce: PKCEChallenge | None = None
    ) -> str:
        params = {"state": state, "mock": "true"}
        if pkce is not None:
            params["code_challenge"] = pkce.code_challenge
            params["code_challenge_method"] = pkce.code_challenge_method
        return f"https://{self.provider.value}.example.com/authorize?{urlencode(params)}"

    async def exchange_code(
        self, code: str, code_verifier: str | None = None
    ) -> TokenSet:
        self.exchanges.append((code, code_verifier))
        user_info = self.identities.get(code)
        if user_info is None:
            raise TokenExchangeError(self.provider.value, "400: invalid_grant")
        return self._issue(user_info, f"refresh-{code}")

    async def fetch_user_info(self, access_token: str) -> UserInfo:
        user_info = self._profiles.get(access_token)
        if user_info is None:
            raise UserInfoError(self.provider.value, "401: invalid_token")
        return user_info

    async def refresh_tokens(self, refresh_token: str) -> TokenSet:
        self.refreshes.append(refresh_token)
        if refresh_token in self.failing_refresh_tokens:
            raise TokenExchangeError(self.provider.value, "400: invalid_grant")
        self._counter += 1
        return TokenSet(
            access_token=f"{self.provider.value}-access-refreshed-{self._counter}",
            expires_at=self._expiry(),
        )

    def _issue(self, user_info: UserInfo, refresh_token: str) -> TokenSet:
        self._counter += 1
        access_token = f"{self.provider.value}-access-{self._counter}"
        self._profiles[access_token] = user_info
        return TokenSet(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=self._expiry(),
        )

    def _expiry(self) -> datetime | None:
        if self.token_lifetime is None:
            return None
        return datetime.now(timezone.utc) + self.token_lifetime
