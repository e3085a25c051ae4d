"""Google OAuth 2.0 client."""

from typing import Any

from studyhall.domain.error import UserInfoError
from studyhall.domain.value import AuthProvider, UserInfo

from .base import HttpProviderClient


class GoogleOAuthClient(HttpProviderClient):
    """Google sign-in via the OAuth 2.0 v2 endpoints."""

    provider = AuthProvider.GOOGLE
    authorize_endpoint = "https://accounts.google.com/o/oauth2/v2/auth"
    token_endpoint = "https://oauth2.googleapis.com/token"
    userinfo_endpoint = "https://www.googleapis.com/oauth2/v2/userinfo"
    scope = "profile email"

    def normalize_profile(self, payload: dict[str, Any]) -> UserInfo:
        if not payload.get("id"):
            raise UserInfoError(self.provider.value, "Profile has no id")
        return UserInfo(
            id=str(payload["id"]),
            email=payload.get("email"),
            name=payload.get("name"),
            picture=payload.get("picture"),
        )
