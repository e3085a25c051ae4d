"""Unit tests for IdentityReconciliationService."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from dishka import AsyncContainer

from studyhall.domain.error import AccountLinkConflictError, NotFoundError
from studyhall.domain.model import LINKED_TO_EXISTING_EMAIL
from studyhall.domain.service import IdentityReconciliationService, TokenCipherService
from studyhall.domain.service.identity_reconciliation_service import split_name
from studyhall.domain.value import (
    AccountRole,
    AuthProvider,
    ConflictType,
    TokenSet,
    UserInfo,
)
from studyhall.persistence.repository.inmemory import (
    InMemoryAccountRepository,
    InMemoryAccountSettingsRepository,
    InMemoryAuditEventRepository,
    InMemorySocialAuthLinkRepository,
    InMemoryUnitOfWork,
)
from tests.factories import make_account, make_link
from tests.harness import create_env_fixture

unit_env = create_env_fixture()

GOOGLE_USER = UserInfo(id="g-100", email="pat@example.com", name="Pat Q Parent")


def fresh_tokens(access: str = "access-1", refresh: str | None = "refresh-1") -> TokenSet:
    return TokenSet(
        access_token=access,
        refresh_token=refresh,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


class Env:
    """Service under test plus the in-memory stores behind it."""

    def __init__(self, container: AsyncContainer) -> None:
        self.container = container

    async def load(self) -> "Env":
        get = self.container.get
        self.service = await get(IdentityReconciliationService)
        self.cipher = await get(TokenCipherService)
        self.accounts = await get(InMemoryAccountRepository)
        self.links = await get(InMemorySocialAuthLinkRepository)
        self.settings = await get(InMemoryAccountSettingsRepository)
        self.audit = await get(InMemoryAuditEventRepository)
        self.unit_of_work = await get(InMemoryUnitOfWork)
        return self


@pytest_asyncio.fixture
async def env(unit_env) -> Env:
    return await Env(unit_env).load()


class TestNewAccount:
    """Identities nobody knows create a fresh parent account."""

    @pytest.mark.asyncio
    async def test_creates_verified_parent_with_link_and_settings(self, env):
        result = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
        )

        assert result.is_new_user is True
        assert result.linked_account is False
        assert result.conflict_resolution is None

        account = await env.accounts.find_by_id(result.account.id)
        assert account.email == "pat@example.com"
        assert account.role == AccountRole.PARENT
        assert account.is_email_verified is True
        assert account.first_name == "Pat"
        assert account.last_name == "Q Parent"
        assert account.has_password is False
        assert [link.provider_user_id for link in account.social_auth_links] == ["g-100"]
        assert await env.settings.find_by_account_id(account.id) is not None

    @pytest.mark.asyncio
    async def test_tokens_are_stored_encrypted(self, env):
        result = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens("plain-access", "plain-refresh")
        )

        link = result.account.social_auth_links[0]
        assert link.access_token_encrypted.root != "plain-access"
        assert env.cipher.decrypt(link.access_token_encrypted) == "plain-access"
        assert env.cipher.decrypt(link.refresh_token_encrypted) == "plain-refresh"

    @pytest.mark.asyncio
    async def test_identity_without_email_gets_placeholder(self, env):
        user_info = UserInfo(id="17841", name="pat.draws")

        result = await env.service.reconcile(
            AuthProvider.INSTAGRAM, user_info, fresh_tokens()
        )

        assert result.account.email == "instagram_17841@oauth.local"
        assert result.account.first_name == "pat.draws"
        assert result.account.last_name is None

    @pytest.mark.asyncio
    async def test_audits_attempt_then_creation(self, env):
        await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens(), ip_address="203.0.113.9"
        )

        assert env.audit.actions() == ["oauth_callback_attempt", "oauth_user_created"]
        assert env.audit.events[1].ip_address == "203.0.113.9"
        assert env.audit.events[1].details["provider"] == "google"


class TestExistingLink:
    """A known identity signs its owner back in."""

    @pytest.mark.asyncio
    async def test_relogin_is_idempotent(self, env):
        first = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens("access-1", "refresh-1")
        )
        second = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens("access-2", None)
        )

        assert second.account.id == first.account.id
        assert second.is_new_user is False
        assert second.linked_account is False

        links = await env.links.find_all_by_account_id(first.account.id)
        assert len(links) == 1
        assert env.cipher.decrypt(links[0].access_token_encrypted) == "access-2"
        # Provider did not rotate the refresh token: keep the old one
        assert env.cipher.decrypt(links[0].refresh_token_encrypted) == "refresh-1"
        assert env.audit.actions()[-1] == "oauth_login_success"

    @pytest.mark.asyncio
    async def test_concurrent_callbacks_create_one_account(self, env):
        first, second = await asyncio.gather(
            env.service.reconcile(
                AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens("access-1")
            ),
            env.service.reconcile(
                AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens("access-2")
            ),
        )

        assert first.account.id == second.account.id
        assert [first.is_new_user, second.is_new_user].count(True) == 1
        assert len(env.accounts.snapshot()) == 1
        assert len(env.links.snapshot()) == 1
        assert sorted(env.audit.actions()) == sorted(
            [
                "oauth_callback_attempt",
                "oauth_callback_attempt",
                "oauth_user_created",
                "oauth_login_success",
            ]
        )

    @pytest.mark.asyncio
    async def test_existing_link_wins_over_email_match(self, env):
        owner = await env.accounts.save(make_account(email="owner@example.com"))
        await env.links.save(
            make_link(owner.id, AuthProvider.GOOGLE, "g-100", cipher=env.cipher)
        )
        await env.accounts.save(make_account(email="pat@example.com"))

        result = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
        )

        assert result.account.id == owner.id


class TestLinkToExistingEmail:
    """An account owning the email gains the new identity."""

    @pytest.mark.asyncio
    async def test_links_identity_to_email_owner(self, env):
        existing = await env.accounts.save(make_account(email="pat@example.com"))
        await env.links.save(
            make_link(existing.id, AuthProvider.APPLE, "001.abc", cipher=env.cipher)
        )

        result = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
        )

        assert result.account.id == existing.id
        assert result.is_new_user is False
        assert result.linked_account is True
        assert result.conflict_resolution == LINKED_TO_EXISTING_EMAIL

        account = await env.accounts.find_by_id(existing.id)
        assert {link.provider for link in account.social_auth_links} == {
            AuthProvider.APPLE,
            AuthProvider.GOOGLE,
        }
        assert env.audit.actions()[-1] == "oauth_account_linked"


class TestConflict:
    """The email owner already uses another identity at the same provider."""

    @pytest.mark.asyncio
    async def test_conflict_is_rejected_without_mutations(self, env):
        existing = await env.accounts.save(make_account(email="pat@example.com"))
        await env.links.save(
            make_link(existing.id, AuthProvider.GOOGLE, "g-original", cipher=env.cipher)
        )
        links_before = env.links.snapshot()
        accounts_before = env.accounts.snapshot()

        with pytest.raises(AccountLinkConflictError):
            await env.service.reconcile(AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens())

        assert env.links.snapshot() == links_before
        assert env.accounts.snapshot() == accounts_before
        assert env.unit_of_work.rollbacks == 1

    @pytest.mark.asyncio
    async def test_conflict_is_audited_with_both_identities(self, env):
        existing = await env.accounts.save(make_account(email="pat@example.com"))
        await env.links.save(
            make_link(existing.id, AuthProvider.GOOGLE, "g-original", cipher=env.cipher)
        )

        with pytest.raises(AccountLinkConflictError):
            await env.service.reconcile(AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens())

        assert env.audit.actions() == ["oauth_callback_attempt", "oauth_account_conflict"]
        details = env.audit.events[-1].details
        assert details["conflictType"] == "different_provider_id_same_email"
        assert details["existingProviderUserId"] == "g-original"
        assert details["newProviderUserId"] == "g-100"


class TestFailures:
    """Unexpected failures roll back and are audited."""

    @pytest.mark.asyncio
    async def test_storage_failure_rolls_back_and_audits(self, env, monkeypatch):
        async def broken_save(link):
            raise RuntimeError("disk full")

        monkeypatch.setattr(env.links, "save", broken_save)

        with pytest.raises(RuntimeError):
            await env.service.reconcile(AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens())

        assert await env.accounts.find_by_email("pat@example.com") is None
        assert env.audit.actions()[-1] == "oauth_callback_error"

    @pytest.mark.asyncio
    async def test_audit_outage_does_not_block_sign_in(self, env):
        env.audit.fail_appends = True

        result = await env.service.reconcile(
            AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
        )

        assert result.is_new_user is True
        assert env.audit.events == []


class TestCheckAccountConflicts:
    """Read-only pre-flight check before a manual link."""

    @pytest.mark.asyncio
    async def test_no_conflict(self, env):
        current = await env.accounts.save(make_account(email="me@example.com"))

        report = await env.service.check_account_conflicts(
            GOOGLE_USER, AuthProvider.GOOGLE, current.id
        )

        assert report.has_conflict is False
        assert report.conflict_type == ConflictType.NONE

    @pytest.mark.asyncio
    async def test_identity_already_linked(self, env):
        owner = await env.accounts.save(make_account(email="owner@example.com"))
        link = await env.links.save(
            make_link(owner.id, AuthProvider.GOOGLE, "g-100", cipher=env.cipher)
        )
        current = await env.accounts.save(make_account(email="me@example.com"))

        report = await env.service.check_account_conflicts(
            GOOGLE_USER, AuthProvider.GOOGLE, current.id
        )

        assert report.has_conflict is True
        assert report.conflict_type == ConflictType.PROVIDER_ALREADY_LINKED
        assert report.conflict_details.linked_to_user.id == owner.id
        assert report.conflict_details.linked_at == link.created_at

    @pytest.mark.asyncio
    async def test_email_owned_under_other_identity(self, env):
        owner = await env.accounts.save(make_account(email="pat@example.com"))
        await env.links.save(
            make_link(owner.id, AuthProvider.GOOGLE, "g-original", cipher=env.cipher)
        )
        current = await env.accounts.save(make_account(email="me@example.com"))

        report = await env.service.check_account_conflicts(
            GOOGLE_USER, AuthProvider.GOOGLE, current.id
        )

        assert report.conflict_type == ConflictType.EMAIL_DIFFERENT_PROVIDER_ID
        assert report.conflict_details.existing_user.id == owner.id
        assert report.conflict_details.existing_provider_user_id == "g-original"

    @pytest.mark.asyncio
    async def test_check_writes_nothing(self, env):
        current = await env.accounts.save(make_account(email="me@example.com"))
        links_before = env.links.snapshot()

        await env.service.check_account_conflicts(
            GOOGLE_USER, AuthProvider.GOOGLE, current.id
        )

        assert env.links.snapshot() == links_before
        assert env.audit.events == []


class TestLinkProvider:
    """Manual linking from an authenticated session."""

    @pytest.mark.asyncio
    async def test_links_and_audits_success(self, env):
        current = await env.accounts.save(make_account(email="me@example.com"))

        link = await env.service.link_provider(
            current.id, AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
        )

        assert link.account_id == current.id
        assert link.provider_email == "pat@example.com"
        assert env.audit.actions() == ["oauth_manual_link_success"]

    @pytest.mark.asyncio
    async def test_conflict_carries_report(self, env):
        owner = await env.accounts.save(make_account(email="owner@example.com"))
        await env.links.save(
            make_link(owner.id, AuthProvider.GOOGLE, "g-100", cipher=env.cipher)
        )
        current = await env.accounts.save(make_account(email="me@example.com"))

        with pytest.raises(AccountLinkConflictError) as exc_info:
            await env.service.link_provider(
                current.id, AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
            )

        assert exc_info.value.report.conflict_type == ConflictType.PROVIDER_ALREADY_LINKED
        assert env.audit.actions() == ["oauth_manual_link_conflict"]
        assert await env.links.find_all_by_account_id(current.id) == []

    @pytest.mark.asyncio
    async def test_second_identity_at_same_provider_is_rejected(self, env):
        current = await env.accounts.save(make_account(email="me@example.com"))
        await env.links.save(
            make_link(current.id, AuthProvider.GOOGLE, "g-mine", cipher=env.cipher)
        )

        with pytest.raises(AccountLinkConflictError):
            await env.service.link_provider(
                current.id, AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
            )

    @pytest.mark.asyncio
    async def test_unknown_account(self, env):
        with pytest.raises(NotFoundError):
            await env.service.link_provider(
                make_account().id, AuthProvider.GOOGLE, GOOGLE_USER, fresh_tokens()
            )


class TestSplitName:
    """Tests for display name splitting."""

    def test_splits_on_first_space(self):
        assert split_name("Ada Lovelace King") == ("Ada", "Lovelace King")

    def test_single_word_has_no_last_name(self):
        assert split_name("Ada") == ("Ada", None)

    def test_blank_name(self):
        assert split_name("  ") == (None, None)
        assert split_name(None) == (None, None)
