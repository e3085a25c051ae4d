"""OAuth provider clients."""

from .apple import AppleOAuthClient
from .base import HttpProviderClient
from .google import GoogleOAuthClient
from .instagram import InstagramOAuthClient
from .mock import MockProviderClient

__all__ = [
    "AppleOAuthClient",
    "GoogleOAuthClient",
    "HttpProviderClient",
    "InstagramOAuthClient",
    "MockProviderClient",
]
