"""Instagram OAuth 2.0 client."""

from typing import Any

from studyhall.domain.error import UserInfoError
from studyhall.domain.value import AuthProvider, UserInfo

from .base import HttpProviderClient


class InstagramOAuthClient(HttpProviderClient):
    """Instagram Basic Display sign-in.

    Instagram never shares an email address. The username becomes the
    display name.
    """

    provider = AuthProvider.INSTAGRAM
    authorize_endpoint = "https://api.instagram.com/oauth/authorize"
    token_endpoint = "https://api.instagram.com/oauth/access_token"
    userinfo_endpoint = "https://graph.instagram.com/me?fields=id,username"
    scope = "user_profile user_media"

    def normalize_profile(self, payload: dict[str, Any]) -> UserInfo:
        if not payload.get("id"):
            raise UserInfoError(self.provider.value, "Profile has no id")
        return UserInfo(id=str(payload["id"]), name=payload.get("username"))
