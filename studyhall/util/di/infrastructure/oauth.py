"""OAuth provider client infrastructure providers."""

from dishka import Scope, provide

from studyhall.adapter.provider import (
    AppleOAuthClient,
    GoogleOAuthClient,
    InstagramOAuthClient,
)
from studyhall.config import AuthSettings
from studyhall.domain.service import ProviderClient
from studyhall.domain.value import AuthProvider
from studyhall.util.di.base import ProviderBase


class OAuthProvider(ProviderBase):
    """OAuth client component base."""

    __mock_component__ = "oauth"


class ProdOAuthProvider(OAuthProvider):
    """Production OAuth clients talking to the real provider endpoints."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_oauth_clients(
        self, auth_settings: AuthSettings
    ) -> dict[AuthProvider, ProviderClient]:
        """Provide dictionary of all OAuth clients by provider.

        Args:
            auth_settings: Client credentials and callback URLs per provider

        Returns:
            Dictionary mapping AuthProvider to its client
        """
        timeout = auth_settings.provider_timeout_seconds
        return {
            AuthProvider.GOOGLE: GoogleOAuthClient(
                client_id=auth_settings.google.client_id,
                client_secret=auth_settings.google.client_secret,
                redirect_uri=auth_settings.google.redirect_uri,
                timeout=timeout,
            ),
            AuthProvider.APPLE: AppleOAuthClient(
                client_id=auth_settings.apple.client_id,
                client_secret=auth_settings.apple.client_secret,
                redirect_uri=auth_settings.apple.redirect_uri,
                timeout=timeout,
            ),
            AuthProvider.INSTAGRAM: InstagramOAuthClient(
                client_id=auth_settings.instagram.client_id,
                client_secret=auth_settings.instagram.client_secret,
                redirect_uri=auth_settings.instagram.redirect_uri,
                timeout=timeout,
            ),
        }
