"""Unit tests for TokenLifecycleManager."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from studyhall.adapter.provider import MockProviderClient
from studyhall.domain.error import LastFactorError, NotFoundError
from studyhall.domain.service import (
    ProviderClient,
    TokenCipherService,
    TokenLifecycleManager,
)
from studyhall.domain.value import AuthProvider, TokenStatus
from studyhall.persistence.repository.inmemory import (
    InMemoryAccountRepository,
    InMemoryAuditEventRepository,
    InMemorySocialAuthLinkRepository,
)
from tests.factories import make_account, make_link
from tests.harness import create_env_fixture

unit_env = create_env_fixture()


class Env:
    """Manager under test plus the in-memory stores and mock clients."""

    lifecycle: TokenLifecycleManager
    cipher: TokenCipherService
    accounts: InMemoryAccountRepository
    links: InMemorySocialAuthLinkRepository
    audit: InMemoryAuditEventRepository
    clients: dict[AuthProvider, MockProviderClient]

    async def account_with(self, *providers: AuthProvider, password_hash=None):
        account = await self.accounts.save(make_account(password_hash=password_hash))
        for provider in providers:
            await self.links.save(
                make_link(
                    account.id, provider, f"{provider.value}-id", cipher=self.cipher
                )
            )
        return account


@pytest_asyncio.fixture
async def env(unit_env) -> Env:
    e = Env()
    e.lifecycle = await unit_env.get(TokenLifecycleManager)
    e.cipher = await unit_env.get(TokenCipherService)
    e.accounts = await unit_env.get(InMemoryAccountRepository)
    e.links = await unit_env.get(InMemorySocialAuthLinkRepository)
    e.audit = await unit_env.get(InMemoryAuditEventRepository)
    e.clients = await unit_env.get(dict[AuthProvider, ProviderClient])
    return e


class TestRefreshThreshold:
    """Tokens are refreshed five minutes before they expire."""

    @pytest.mark.asyncio
    async def test_expiring_in_four_minutes_needs_refresh(self, env):
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=4)

        assert env.lifecycle.needs_refresh(expires_at) is True
        assert env.lifecycle.token_status(expires_at) == TokenStatus.EXPIRES_SOON

    @pytest.mark.asyncio
    async def test_expiring_in_ten_minutes_is_fresh(self, env):
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=10)

        assert env.lifecycle.needs_refresh(expires_at) is False
        assert env.lifecycle.token_status(expires_at) == TokenStatus.VALID

    @pytest.mark.asyncio
    async def test_no_expiry_never_needs_refresh(self, env):
        assert env.lifecycle.needs_refresh(None) is False
        assert env.lifecycle.token_status(None) == TokenStatus.NO_EXPIRY

    @pytest.mark.asyncio
    async def test_past_expiry_is_expired(self, env):
        expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert env.lifecycle.token_status(expires_at) == TokenStatus.EXPIRED


class TestListLinks:
    """Tests for the linked provider listing."""

    @pytest.mark.asyncio
    async def test_newest_first_without_tokens(self, env):
        account = await env.accounts.save(make_account())
        old = datetime.now(timezone.utc) - timedelta(days=2)
        await env.links.save(
            make_link(account.id, AuthProvider.APPLE, "a-1", created_at=old)
        )
        await env.links.save(make_link(account.id, AuthProvider.GOOGLE, "g-1"))

        statuses = await env.lifecycle.list_links(account.id)

        assert [s.provider for s in statuses] == [AuthProvider.GOOGLE, AuthProvider.APPLE]
        dumped = statuses[0].model_dump()
        assert "access_token_encrypted" not in dumped
        assert "refresh_token_encrypted" not in dumped

    @pytest.mark.asyncio
    async def test_status_of_missing_link(self, env):
        account = await env.account_with(AuthProvider.GOOGLE)

        with pytest.raises(NotFoundError):
            await env.lifecycle.link_status(account.id, AuthProvider.APPLE)


class TestRefresh:
    """Tests for on-demand refresh."""

    @pytest.mark.asyncio
    async def test_refresh_stores_new_access_token_and_keeps_refresh_token(self, env):
        account = await env.account_with(AuthProvider.GOOGLE)

        status = await env.lifecycle.refresh_for_account(account.id, AuthProvider.GOOGLE)

        link = await env.links.find_by_id(status.id)
        assert env.cipher.decrypt(link.access_token_encrypted).startswith(
            "google-access-refreshed-"
        )
        assert env.cipher.decrypt(link.refresh_token_encrypted) == "stored-refresh"
        assert env.clients[AuthProvider.GOOGLE].refreshes == ["stored-refresh"]
        assert status.token_status == TokenStatus.VALID

    @pytest.mark.asyncio
    async def test_link_without_refresh_token_cannot_refresh(self, env):
        account = await env.accounts.save(make_account())
        link = await env.links.save(
            make_link(account.id, refresh_token=None, cipher=env.cipher)
        )

        with pytest.raises(NotFoundError):
            await env.lifecycle.refresh_and_persist(link.id)


class TestCleanup:
    """Tests for the expired token sweep."""

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_sweep(self, env):
        account = await env.accounts.save(make_account())
        expired = timedelta(minutes=-5)
        refreshable = await env.links.save(
            make_link(
                account.id,
                AuthProvider.GOOGLE,
                "g-1",
                cipher=env.cipher,
                refresh_token="rt-good",
                expires_in=expired,
            )
        )
        revoked = await env.links.save(
            make_link(
                account.id,
                AuthProvider.INSTAGRAM,
                "ig-1",
                cipher=env.cipher,
                refresh_token="rt-revoked",
                expires_in=expired,
            )
        )
        no_refresh = await env.links.save(
            make_link(
                account.id,
                AuthProvider.APPLE,
                "a-1",
                cipher=env.cipher,
                refresh_token=None,
                expires_in=expired,
            )
        )
        env.clients[AuthProvider.INSTAGRAM].failing_refresh_tokens.add("rt-revoked")

        report = await env.lifecycle.cleanup_expired_tokens()

        assert report.cleaned == 1
        assert [failure.link_id for failure in report.errors] == [revoked.id]

        refreshed = await env.links.find_by_id(refreshable.id)
        assert refreshed.token_expires_at > datetime.now(timezone.utc)

        actions = env.audit.actions()
        assert actions.count("token_auto_refreshed") == 1
        assert actions.count("token_refresh_failed") == 1
        assert actions.count("token_expired_no_refresh") == 1
        no_refresh_event = next(
            e for e in env.audit.events if e.action == "token_expired_no_refresh"
        )
        assert no_refresh_event.details["tokenId"] == str(no_refresh.id)

    @pytest.mark.asyncio
    async def test_undecryptable_token_is_reported_not_raised(self, env):
        account = await env.accounts.save(make_account())
        broken = await env.links.save(
            make_link(account.id, expires_in=timedelta(minutes=-1))
        )

        report = await env.lifecycle.cleanup_expired_tokens()

        assert report.cleaned == 0
        assert report.errors[0].link_id == broken.id

    @pytest.mark.asyncio
    async def test_fresh_links_are_left_alone(self, env):
        await env.account_with(AuthProvider.GOOGLE)

        report = await env.lifecycle.cleanup_expired_tokens()

        assert report.cleaned == 0
        assert report.errors == []
        assert env.clients[AuthProvider.GOOGLE].refreshes == []


class TestUnlink:
    """Tests for single provider unlink."""

    @pytest.mark.asyncio
    async def test_last_factor_is_protected(self, env):
        account = await env.account_with(AuthProvider.GOOGLE)

        with pytest.raises(LastFactorError):
            await env.lifecycle.unlink(account.id, AuthProvider.GOOGLE)

        assert len(await env.links.find_all_by_account_id(account.id)) == 1

    @pytest.mark.asyncio
    async def test_password_allows_unlinking_last_link(self, env):
        account = await env.account_with(
            AuthProvider.GOOGLE, password_hash="$2b$12$abcdefghijklmnopqrstuv"
        )

        await env.lifecycle.unlink(account.id, AuthProvider.GOOGLE)

        assert await env.links.find_all_by_account_id(account.id) == []

    @pytest.mark.asyncio
    async def test_unlink_one_of_two_and_audit(self, env):
        account = await env.account_with(AuthProvider.GOOGLE, AuthProvider.APPLE)

        await env.lifecycle.unlink(
            account.id, AuthProvider.GOOGLE, ip_address="198.51.100.4"
        )

        remaining = await env.links.find_all_by_account_id(account.id)
        assert [link.provider for link in remaining] == [AuthProvider.APPLE]
        assert env.audit.actions() == ["oauth_provider_unlinked"]
        assert env.audit.events[0].ip_address == "198.51.100.4"

    @pytest.mark.asyncio
    async def test_unlinking_missing_provider(self, env):
        account = await env.account_with(AuthProvider.GOOGLE, AuthProvider.APPLE)

        with pytest.raises(NotFoundError):
            await env.lifecycle.unlink(account.id, AuthProvider.INSTAGRAM)


class TestBulkUnlink:
    """Tests for bulk unlink."""

    @pytest.mark.asyncio
    async def test_removing_every_factor_is_rejected_up_front(self, env):
        account = await env.account_with(AuthProvider.GOOGLE, AuthProvider.APPLE)

        with pytest.raises(LastFactorError):
            await env.lifecycle.bulk_unlink(
                account.id, [AuthProvider.GOOGLE, AuthProvider.APPLE]
            )

        assert len(await env.links.find_all_by_account_id(account.id)) == 2
        assert env.audit.events == []

    @pytest.mark.asyncio
    async def test_all_succeed(self, env):
        account = await env.account_with(
            AuthProvider.GOOGLE, AuthProvider.APPLE, AuthProvider.INSTAGRAM
        )

        result = await env.lifecycle.bulk_unlink(
            account.id, [AuthProvider.GOOGLE, AuthProvider.APPLE]
        )

        assert result.success == [AuthProvider.GOOGLE, AuthProvider.APPLE]
        assert result.failed == []
        assert result.partial is False
        assert env.audit.actions() == ["oauth_provider_unlinked"] * 2

    @pytest.mark.asyncio
    async def test_missing_link_is_a_partial_failure(self, env):
        account = await env.account_with(AuthProvider.GOOGLE, AuthProvider.APPLE)

        result = await env.lifecycle.bulk_unlink(
            account.id, [AuthProvider.GOOGLE, AuthProvider.INSTAGRAM]
        )

        assert result.success == [AuthProvider.GOOGLE]
        assert result.failed == [AuthProvider.INSTAGRAM]
        assert "instagram" in result.errors
        assert result.partial is True
        assert env.audit.actions() == [
            "oauth_provider_unlinked",
            "oauth_provider_unlink_failed",
        ]
