"""Unit tests for OAuthCallbackUseCase."""

import pytest

from studyhall.adapter.provider import MockProviderClient
from studyhall.application.usecase.oauth import AuthorizeUseCase, OAuthCallbackUseCase
from studyhall.application.usecase.oauth.authorize import AuthorizeRequest
from studyhall.application.usecase.oauth.callback import CallbackRequest
from studyhall.domain.error import TokenExchangeError, ValidationError
from studyhall.domain.service import JWTService, ProviderClient
from studyhall.domain.value import AuthProvider, PostedIdentity, UserInfo
from studyhall.persistence.repository.inmemory import InMemoryAuditEventRepository
from tests.harness import create_env_fixture

unit_env = create_env_fixture()


async def mock_client(unit_env, provider: AuthProvider) -> MockProviderClient:
    clients = await unit_env.get(dict[AuthProvider, ProviderClient])
    return clients[provider]


class TestOAuthCallbackUseCase:
    """Tests for OAuthCallbackUseCase."""

    @pytest.mark.asyncio
    async def test_new_user_receives_session_token(self, unit_env):
        google = await mock_client(unit_env, AuthProvider.GOOGLE)
        google.register(
            "code-1", UserInfo(id="g-1", email="pat@example.com", name="Pat Parent")
        )
        use_case = await unit_env.get(OAuthCallbackUseCase)
        jwt_service = await unit_env.get(JWTService)

        response = await use_case.execute(
            CallbackRequest(provider="google", code="code-1")
        )

        assert response.is_new_user is True
        assert response.provider == AuthProvider.GOOGLE
        assert response.account.email == "pat@example.com"
        payload = jwt_service.verify(response.token)
        assert payload.account_id == response.account.id

    @pytest.mark.asyncio
    async def test_second_callback_signs_in_same_account(self, unit_env):
        google = await mock_client(unit_env, AuthProvider.GOOGLE)
        identity = UserInfo(id="g-1", email="pat@example.com")
        google.register("code-1", identity)
        google.register("code-2", identity)
        use_case = await unit_env.get(OAuthCallbackUseCase)

        first = await use_case.execute(CallbackRequest(provider="google", code="code-1"))
        second = await use_case.execute(CallbackRequest(provider="google", code="code-2"))

        assert second.account.id == first.account.id
        assert second.is_new_user is False

    @pytest.mark.asyncio
    async def test_exchange_failure_is_audited(self, unit_env):
        use_case = await unit_env.get(OAuthCallbackUseCase)
        audit = await unit_env.get(InMemoryAuditEventRepository)

        with pytest.raises(TokenExchangeError):
            await use_case.execute(
                CallbackRequest(provider="google", code="unknown", ip_address="192.0.2.7")
            )

        assert audit.actions() == ["oauth_callback_error"]
        assert audit.events[0].ip_address == "192.0.2.7"

    @pytest.mark.asyncio
    async def test_apple_without_stored_verifier_is_rejected(self, unit_env):
        apple = await mock_client(unit_env, AuthProvider.APPLE)
        apple.register("code-a", UserInfo(id="001.abc", email="kid@example.com"))
        use_case = await unit_env.get(OAuthCallbackUseCase)

        with pytest.raises(ValidationError):
            await use_case.execute(
                CallbackRequest(provider="apple", code="code-a", state="forged")
            )

        assert apple.exchanges == []

    @pytest.mark.asyncio
    async def test_apple_flow_sends_verifier_once(self, unit_env):
        apple = await mock_client(unit_env, AuthProvider.APPLE)
        apple.register("code-a", UserInfo(id="001.abc"))
        apple.register("code-b", UserInfo(id="001.abc"))
        authorize = await unit_env.get(AuthorizeUseCase)
        use_case = await unit_env.get(OAuthCallbackUseCase)

        started = await authorize.execute(AuthorizeRequest(provider="apple"))
        response = await use_case.execute(
            CallbackRequest(
                provider="apple",
                code="code-a",
                state=started.state,
                user=PostedIdentity(first_name="Kim", last_name="Lee"),
            )
        )

        code, verifier = apple.exchanges[0]
        assert code == "code-a"
        assert verifier is not None
        assert response.account.email == "apple_001.abc@oauth.local"

        # A replayed state finds no verifier
        with pytest.raises(ValidationError):
            await use_case.execute(
                CallbackRequest(provider="apple", code="code-b", state=started.state)
            )
