"""Shared OAuth 2.0 authorization-code client over httpx."""

from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode

import httpx
import logfire

from studyhall.domain.error import TokenExchangeError, UserInfoError
from studyhall.domain.service.provider_registry import ProviderClient
from studyhall.domain.value import PKCEChallenge, TokenSet, UserInfo

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpProviderClient(ProviderClient):
    """Authorization-code client for a provider with standard endpoints.

    Subclasses set the endpoints and scope, and normalize the profile.
    Provider error bodies are kept as ``diagnostic`` on the raised error and
    never become part of the client-facing message.
    """

    authorize_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str | None = None
    scope: str

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize provider client.

        Args:
            client_id: OAuth client ID registered with the provider
            client_secret: OAuth client secret
            redirect_uri: Callback URL registered with the provider
            transport: httpx transport override (tests pass a MockTransport)
            timeout: Per-request timeout in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.transport = transport
        self.timeout = timeout

    def authorize_params(self) -> dict[str, str]:
        """Provider-specific extra authorize query parameters."""
        return {}

    def build_authorization_url(
        self, state: str, pkce: PKCEChallenge | None = None
    ) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        if pkce is not None:
            params["code_challenge"] = pkce.code_challenge
            params["code_challenge_method"] = pkce.code_challenge_method
        params.update(self.authorize_params())

        logfire.info(
            "OAuth authorization initiated",
            provider=self.provider.value,
            uses_pkce=pkce is not None,
        )
        return f"{self.authorize_endpoint}?{urlencode(params)}"

    async def exchange_code(
        self, code: str, code_verifier: str | None = None
    ) -> TokenSet:
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        }
        if code_verifier:
            data["code_verifier"] = code_verifier

        payload = await self._post_token(data)
        return self._token_set(payload)

    async def refresh_tokens(self, refresh_token: str) -> TokenSet:
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        payload = await self._post_token(data)
        return self._token_set(payload)

    async def fetch_user_info(self, access_token: str) -> UserInfo:
        payload = await self._get_profile(access_token)
        return self.normalize_profile(payload)

    @abstractmethod
    def normalize_profile(self, payload: dict[str, Any]) -> UserInfo:
        """Map a provider profile response onto UserInfo."""

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def _post_token(self, data: dict[str, str]) -> dict[str, Any]:
        """POST a form to the token endpoint.

        Raises:
            TokenExchangeError: On network error, non-2xx status or a body
                that is not a JSON object
        """
        provider = self.provider.value
        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_endpoint,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logfire.error(
                "OAuth token request HTTP error", provider=provider, error=str(e)
            )
            raise TokenExchangeError(provider, f"HTTP error: {e}")

        if not response.is_success:
            logfire.error(
                "OAuth token request failed",
                provider=provider,
                status_code=response.status_code,
            )
            raise TokenExchangeError(
                provider, f"{response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError:
            raise TokenExchangeError(provider, "Token response is not JSON")
        if not isinstance(payload, dict):
            raise TokenExchangeError(provider, "Token response is not an object")
        return payload

    def _token_set(self, payload: dict[str, Any]) -> TokenSet:
        access_token = payload.get("access_token")
        if not access_token:
            raise TokenExchangeError(
                self.provider.value, "Token response has no access_token"
            )

        expires_at = None
        expires_in = payload.get("expires_in")
        if expires_in:
            try:
                seconds = int(expires_in)
            except (TypeError, ValueError):
                raise TokenExchangeError(
                    self.provider.value, f"Invalid expires_in: {expires_in!r}"
                )
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=seconds)

        return TokenSet(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
            id_token=payload.get("id_token"),
        )

    async def _get_profile(self, access_token: str) -> dict[str, Any]:
        """GET the profile endpoint with a bearer token.

        Raises:
            UserInfoError: On network error, non-2xx status or a body that is
                not a JSON object
        """
        provider = self.provider.value
        try:
            async with self._client() as client:
                response = await client.get(
                    self.userinfo_endpoint,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logfire.error(
                "OAuth user info HTTP error", provider=provider, error=str(e)
            )
            raise UserInfoError(provider, f"HTTP error: {e}")

        if not response.is_success:
            logfire.error(
                "OAuth user info request failed",
                provider=provider,
                status_code=response.status_code,
            )
            raise UserInfoError(provider, f"{response.status_code}: {response.text}")

        try:
            payload = response.json()
        except ValueError:
            raise UserInfoError(provider, "User info response is not JSON")
        if not isinstance(payload, dict):
            raise UserInfoError(provider, "User info response is not an object")
        return payload
