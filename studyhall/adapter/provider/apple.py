"""Sign in with Apple client."""

from typing import Any

import jwt
import logfire

from studyhall.domain.error import UserInfoError, UserInfoUnsupportedError
from studyhall.domain.value import AuthProvider, PostedIdentity, TokenSet, UserInfo

from .base import HttpProviderClient

APPLE_ISSUER = "https://appleid.apple.com"


class AppleOAuthClient(HttpProviderClient):
    """Sign in with Apple.

    Apple has no profile endpoint. The identity comes from the ID token in
    the token endpoint response, received directly from Apple over TLS.
    Name and email may also be posted to the callback, and only on the
    very first authorization.
    """

    provider = AuthProvider.APPLE
    requires_pkce = True
    authorize_endpoint = "https://appleid.apple.com/auth/authorize"
    token_endpoint = "https://appleid.apple.com/auth/token"
    scope = "name email"

    def authorize_params(self) -> dict[str, str]:
        # Apple requires form_post when name or email scopes are requested
        return {"response_mode": "form_post"}

    async def fetch_user_info(self, access_token: str) -> UserInfo:
        raise UserInfoUnsupportedError(self.provider.value)

    def normalize_profile(self, payload: dict[str, Any]) -> UserInfo:
        raise UserInfoUnsupportedError(self.provider.value)

    async def resolve_identity(
        self, tokens: TokenSet, posted: PostedIdentity | None = None
    ) -> UserInfo:
        """Read the identity from Apple's ID token.

        Args:
            tokens: Token endpoint response, which carries ``id_token``
            posted: Name and email Apple posted to the callback, if any

        Returns:
            Normalized user info; posted fields fill what the token lacks

        Raises:
            UserInfoError: If the ID token is missing, malformed, or issued
                by someone else or for another client
        """
        provider = self.provider.value
        if not tokens.id_token:
            raise UserInfoError(provider, "Token response has no id_token")

        # Back-channel token response over TLS: signature check not required
        try:
            claims = jwt.decode(
                tokens.id_token,
                options={"verify_signature": False},
                algorithms=["RS256"],
            )
        except jwt.PyJWTError as e:
            logfire.error("Apple ID token could not be decoded", error=str(e))
            raise UserInfoError(provider, f"Malformed id_token: {e}")

        if claims.get("iss") != APPLE_ISSUER:
            raise UserInfoError(provider, f"Unexpected issuer: {claims.get('iss')}")

        audience = claims.get("aud")
        audiences = audience if isinstance(audience, list) else [audience]
        if self.client_id not in audiences:
            raise UserInfoError(provider, "ID token was issued for another client")

        subject = claims.get("sub")
        if not subject:
            raise UserInfoError(provider, "ID token has no subject")

        posted = posted or PostedIdentity()
        name = " ".join(
            part for part in (posted.first_name, posted.last_name) if part
        )
        return UserInfo(
            id=str(subject),
            email=claims.get("email") or posted.email,
            name=name or None,
        )
