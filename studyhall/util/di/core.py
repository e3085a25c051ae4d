"""Core DI providers (non-mockable)."""

from datetime import timedelta

from dishka import Scope, provide

from studyhall.adapter.oauth.cache import PKCEStore
from studyhall.config import AuthSettings, Settings
from studyhall.util.cipher import FernetCipher
from studyhall.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_auth_settings(self, settings: Settings) -> AuthSettings:
        """Provide auth settings."""
        return settings.auth

    @provide(scope=Scope.APP)
    def provide_cipher(self, auth_settings: AuthSettings) -> FernetCipher:
        """Provide the provider-token cipher keyed by the server secret."""
        return FernetCipher(auth_settings.token_encryption_key)

    @provide(scope=Scope.APP)
    def provide_pkce_store(self, auth_settings: AuthSettings) -> PKCEStore:
        """Provide the process-wide PKCE verifier store."""
        return PKCEStore(ttl=timedelta(seconds=auth_settings.pkce_ttl_seconds))
