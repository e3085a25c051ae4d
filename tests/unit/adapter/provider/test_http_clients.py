"""Unit tests for the HTTP provider clients.

Provider endpoints are faked with httpx.MockTransport.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from studyhall.adapter.oauth.pkce import generate_pkce_challenge
from studyhall.adapter.provider import GoogleOAuthClient, InstagramOAuthClient
from studyhall.domain.error import TokenExchangeError, UserInfoError


def google_client(handler) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id="google-client",
        client_secret="google-secret",
        redirect_uri="http://localhost:8000/oauth/google/callback",
        transport=httpx.MockTransport(handler),
    )


def instagram_client(handler) -> InstagramOAuthClient:
    return InstagramOAuthClient(
        client_id="ig-client",
        client_secret="ig-secret",
        redirect_uri="http://localhost:8000/oauth/instagram/callback",
        transport=httpx.MockTransport(handler),
    )


class TestBuildAuthorizationUrl:
    """Tests for authorization URL composition."""

    def test_google_url_carries_standard_parameters(self):
        client = google_client(lambda request: httpx.Response(500))

        url = client.build_authorization_url("state-1")

        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://accounts.google.com/o/oauth2/v2/auth"
        )
        assert params["client_id"] == ["google-client"]
        assert params["response_type"] == ["code"]
        assert params["scope"] == ["profile email"]
        assert params["state"] == ["state-1"]
        assert "code_challenge" not in params

    def test_pkce_challenge_is_included(self):
        client = google_client(lambda request: httpx.Response(500))
        pkce = generate_pkce_challenge()

        params = parse_qs(urlparse(client.build_authorization_url("s", pkce)).query)

        assert params["code_challenge"] == [pkce.code_challenge]
        assert params["code_challenge_method"] == ["S256"]


class TestExchangeCode:
    """Tests for the authorization code exchange."""

    @pytest.mark.asyncio
    async def test_posts_form_and_computes_absolute_expiry(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            seen["accept"] = request.headers.get("accept")
            return httpx.Response(
                200,
                json={
                    "access_token": "at-1",
                    "refresh_token": "rt-1",
                    "expires_in": 3600,
                },
            )

        client = google_client(handler)
        before = datetime.now(timezone.utc)

        tokens = await client.exchange_code("code-1", code_verifier="v" * 43)

        assert seen["url"] == "https://oauth2.googleapis.com/token"
        assert seen["accept"] == "application/json"
        assert seen["form"]["grant_type"] == ["authorization_code"]
        assert seen["form"]["code"] == ["code-1"]
        assert seen["form"]["code_verifier"] == ["v" * 43]
        assert tokens.access_token == "at-1"
        assert tokens.refresh_token == "rt-1"
        assert tokens.expires_at is not None
        assert before + timedelta(seconds=3599) <= tokens.expires_at
        assert tokens.expires_at <= datetime.now(timezone.utc) + timedelta(seconds=3600)

    @pytest.mark.asyncio
    async def test_missing_expires_in_means_no_expiry(self):
        client = google_client(
            lambda request: httpx.Response(200, json={"access_token": "at-1"})
        )

        tokens = await client.exchange_code("code-1")

        assert tokens.expires_at is None
        assert tokens.refresh_token is None

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_diagnostic(self):
        client = google_client(
            lambda request: httpx.Response(400, json={"error": "invalid_grant"})
        )

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange_code("bad-code")

        assert "invalid_grant" in exc_info.value.diagnostic
        assert "invalid_grant" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error_raises_token_exchange_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = google_client(handler)

        with pytest.raises(TokenExchangeError):
            await client.exchange_code("code-1")

    @pytest.mark.asyncio
    async def test_response_without_access_token_is_rejected(self):
        client = google_client(lambda request: httpx.Response(200, json={}))

        with pytest.raises(TokenExchangeError):
            await client.exchange_code("code-1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_in", ["soon", "1.5h", [3600]])
    async def test_non_numeric_expires_in_is_rejected(self, expires_in):
        client = google_client(
            lambda request: httpx.Response(
                200, json={"access_token": "at-1", "expires_in": expires_in}
            )
        )

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange_code("code-1")

        assert "expires_in" in exc_info.value.diagnostic

    @pytest.mark.asyncio
    async def test_numeric_string_expires_in_is_accepted(self):
        client = google_client(
            lambda request: httpx.Response(
                200, json={"access_token": "at-1", "expires_in": "3600"}
            )
        )

        tokens = await client.exchange_code("code-1")

        assert tokens.expires_at is not None


class TestRefreshTokens:
    """Tests for refresh grant."""

    @pytest.mark.asyncio
    async def test_uses_refresh_token_grant(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "at-2", "expires_in": 60})

        client = google_client(handler)

        tokens = await client.refresh_tokens("rt-1")

        assert seen["form"]["grant_type"] == ["refresh_token"]
        assert seen["form"]["refresh_token"] == ["rt-1"]
        assert tokens.access_token == "at-2"
        assert tokens.refresh_token is None


class TestFetchUserInfo:
    """Tests for profile lookup and normalization."""

    @pytest.mark.asyncio
    async def test_google_profile_is_normalized(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["authorization"] == "Bearer at-1"
            return httpx.Response(
                200,
                json={
                    "id": "1234567890",
                    "email": "pat@example.com",
                    "name": "Pat Parent",
                    "picture": "https://example.com/p.png",
                },
            )

        user_info = await google_client(handler).fetch_user_info("at-1")

        assert user_info.id == "1234567890"
        assert user_info.email == "pat@example.com"
        assert user_info.name == "Pat Parent"
        assert user_info.picture == "https://example.com/p.png"

    @pytest.mark.asyncio
    async def test_instagram_username_becomes_name(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "graph.instagram.com"
            return httpx.Response(200, json={"id": "17841", "username": "pat.draws"})

        user_info = await instagram_client(handler).fetch_user_info("at-1")

        assert user_info.id == "17841"
        assert user_info.name == "pat.draws"
        assert user_info.email is None

    @pytest.mark.asyncio
    async def test_profile_error_raises_user_info_error(self):
        client = google_client(lambda request: httpx.Response(401, text="expired"))

        with pytest.raises(UserInfoError) as exc_info:
            await client.fetch_user_info("at-1")

        assert exc_info.value.diagnostic == "401: expired"

    @pytest.mark.asyncio
    async def test_profile_without_id_is_rejected(self):
        client = google_client(
            lambda request: httpx.Response(200, json={"email": "a@b.c"})
        )

        with pytest.raises(UserInfoError):
            await client.fetch_user_info("at-1")
