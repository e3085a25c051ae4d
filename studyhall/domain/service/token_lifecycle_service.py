"""Provider token lifecycle domain service."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Optional

import logfire
from pydantic import BaseModel, Field

from studyhall.domain.error import LastFactorError, NotFoundError
from studyhall.domain.model import SocialAuthLink
from studyhall.domain.repository import (
    AccountRepository,
    SocialAuthLinkRepository,
    UnitOfWork,
)
from studyhall.domain.value import (
    AccountId,
    AuditEventType,
    AuthProvider,
    SocialAuthLinkId,
    TokenStatus,
)

from .audit_log_service import AuditLog
from .base import Service
from .provider_registry import ProviderRegistry
from .token_cipher_service import TokenCipherService

DEFAULT_REFRESH_WINDOW = timedelta(minutes=5)


class CleanupFailure(BaseModel):
    """A link the cleanup sweep could not refresh."""

    link_id: SocialAuthLinkId
    error: str


class CleanupReport(BaseModel):
    """Outcome of one cleanup sweep."""

    cleaned: int = 0
    errors: list[CleanupFailure] = Field(default_factory=list)


class BulkUnlinkResult(BaseModel):
    """Per-provider outcome of a bulk unlink."""

    success: list[AuthProvider] = Field(default_factory=list)
    failed: list[AuthProvider] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def partial(self) -> bool:
        """Whether at least one provider could not be unlinked."""
        return bool(self.failed)


class LinkedProviderStatus(BaseModel):
    """Public view of a link with its token freshness. Never carries tokens."""

    id: SocialAuthLinkId
    provider: AuthProvider
    provider_user_id: str
    provider_email: Optional[str] = None
    provider_name: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    token_status: TokenStatus
    needs_refresh: bool
    created_at: datetime
    updated_at: datetime


class TokenLifecycleManager(Service):
    """Keeps stored provider tokens fresh and guards unlinking.

    Refresh is attempted ``refresh_window`` before expiry. Unlinking never
    leaves an account without an authentication factor.
    """

    def __init__(
        self,
        social_auth_link_repository: SocialAuthLinkRepository,
        account_repository: AccountRepository,
        unit_of_work: UnitOfWork,
        provider_registry: ProviderRegistry,
        token_cipher: TokenCipherService,
        audit_log: AuditLog,
        refresh_window: timedelta = DEFAULT_REFRESH_WINDOW,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        """Initialize lifecycle manager.

        Args:
            social_auth_link_repository: Link storage
            account_repository: Account storage
            unit_of_work: Atomic scope over the repositories above
            provider_registry: Routes refresh calls to provider clients
            token_cipher: Encrypts and decrypts stored tokens
            audit_log: Security event trail
            refresh_window: How long before expiry a token counts as stale
            clock: Source of the current UTC time
        """
        self.social_auth_link_repository = social_auth_link_repository
        self.account_repository = account_repository
        self.unit_of_work = unit_of_work
        self.provider_registry = provider_registry
        self.token_cipher = token_cipher
        self.audit_log = audit_log
        self.refresh_window = refresh_window
        self.clock = clock

    def needs_refresh(self, expires_at: Optional[datetime]) -> bool:
        """Whether a token expires within the refresh window.

        Tokens without an expiry never need a refresh.
        """
        if expires_at is None:
            return False
        return expires_at <= self.clock() + self.refresh_window

    def token_status(self, expires_at: Optional[datetime]) -> TokenStatus:
        """Classify token freshness."""
        if expires_at is None:
            return TokenStatus.NO_EXPIRY
        if expires_at <= self.clock():
            return TokenStatus.EXPIRED
        if self.needs_refresh(expires_at):
            return TokenStatus.EXPIRES_SOON
        return TokenStatus.VALID

    def describe(self, link: SocialAuthLink) -> LinkedProviderStatus:
        """Build the public status view of a link."""
        return LinkedProviderStatus(
            id=link.id,
            provider=link.provider,
            provider_user_id=link.provider_user_id,
            provider_email=link.provider_email,
            provider_name=link.provider_name,
            token_expires_at=link.token_expires_at,
            token_status=self.token_status(link.token_expires_at),
            needs_refresh=self.needs_refresh(link.token_expires_at),
            created_at=link.created_at,
            updated_at=link.updated_at,
        )

    async def list_links(self, account_id: AccountId) -> list[LinkedProviderStatus]:
        """List an account's links with token status, newest first."""
        links = await self.social_auth_link_repository.find_all_by_account_id(
            account_id
        )
        links.sort(key=lambda link: link.created_at, reverse=True)
        return [self.describe(link) for link in links]

    async def link_status(
        self, account_id: AccountId, provider: AuthProvider
    ) -> LinkedProviderStatus:
        """Get one link's status.

        Raises:
            NotFoundError: If the account has no link for the provider
        """
        link = await self.social_auth_link_repository.find_by_account_and_provider(
            account_id, provider
        )
        if link is None:
            raise NotFoundError("Social auth link", provider.value)
        return self.describe(link)

    async def refresh_and_persist(self, link_id: SocialAuthLinkId) -> SocialAuthLink:
        """Refresh a link's tokens at the provider and store them encrypted.

        The previous refresh token is kept when the provider does not rotate
        it.

        Args:
            link_id: Link to refresh

        Returns:
            The updated link

        Raises:
            NotFoundError: If the link or its refresh token is missing
            DecryptionError: If the stored refresh token is unreadable
            TokenExchangeError: If the provider rejects the refresh
        """
        link = await self.social_auth_link_repository.find_by_id(link_id)
        if link is None:
            raise NotFoundError("Social auth link", str(link_id))
        if link.refresh_token_encrypted is None:
            raise NotFoundError("Refresh token", str(link_id))

        with logfire.span(
            "token_lifecycle.refresh",
            link_id=str(link_id),
            provider=link.provider.value,
        ):
            refresh_token = self.token_cipher.decrypt(link.refresh_token_encrypted)
            tokens = await self.provider_registry.refresh_tokens(
                link.provider, refresh_token
            )

            async with self.unit_of_work.transaction():
                return await self.social_auth_link_repository.update_tokens(
                    link.id,
                    self.token_cipher.encrypt(tokens.access_token),
                    self.token_cipher.encrypt_optional(tokens.refresh_token)
                    or link.refresh_token_encrypted,
                    tokens.expires_at,
                )

    async def refresh_for_account(
        self, account_id: AccountId, provider: AuthProvider
    ) -> LinkedProviderStatus:
        """Refresh the tokens of an account's link on demand.

        Raises:
            NotFoundError: If the account has no link for the provider
        """
        link = await self.social_auth_link_repository.find_by_account_and_provider(
            account_id, provider
        )
        if link is None:
            raise NotFoundError("Social auth link", provider.value)
        updated = await self.refresh_and_persist(link.id)
        return self.describe(updated)

    async def cleanup_expired_tokens(self) -> CleanupReport:
        """Sweep expired links and refresh those that can be refreshed.

        Each link is processed in isolation: one failure never stops the
        sweep. Links without a refresh token are audited and skipped.

        Returns:
            Count of refreshed links and per-link failures
        """
        report = CleanupReport()
        with logfire.span("token_lifecycle.cleanup"):
            expired = await self.social_auth_link_repository.find_expired(self.clock())

            for link in expired:
                if link.refresh_token_encrypted is None:
                    await self.audit_log.record(
                        AuditEventType.AUTHENTICATION,
                        "token_expired_no_refresh",
                        account_id=link.account_id,
                        provider=link.provider,
                        tokenId=str(link.id),
                    )
                    continue

                try:
                    await self.refresh_and_persist(link.id)
                except Exception as e:
                    logfire.warn(
                        "Token refresh failed during cleanup",
                        link_id=str(link.id),
                        provider=link.provider.value,
                        error_type=type(e).__name__,
                    )
                    report.errors.append(CleanupFailure(link_id=link.id, error=str(e)))
                    await self.audit_log.record(
                        AuditEventType.AUTHENTICATION,
                        "token_refresh_failed",
                        account_id=link.account_id,
                        provider=link.provider,
                        tokenId=str(link.id),
                        error=str(e),
                    )
                    continue

                report.cleaned += 1
                await self.audit_log.record(
                    AuditEventType.AUTHENTICATION,
                    "token_auto_refreshed",
                    account_id=link.account_id,
                    provider=link.provider,
                    tokenId=str(link.id),
                )

            logfire.info(
                "Token cleanup completed",
                expired=len(expired),
                cleaned=report.cleaned,
                errors=len(report.errors),
            )
        return report

    async def unlink(
        self,
        account_id: AccountId,
        provider: AuthProvider,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Remove one provider link from an account.

        Raises:
            NotFoundError: If the account or the link does not exist
            LastFactorError: If the link is the account's only factor
        """
        async with self.unit_of_work.transaction():
            account = await self.account_repository.find_by_id(account_id)
            if account is None:
                raise NotFoundError("Account", str(account_id))
            link = account.link_for(provider)
            if link is None:
                raise NotFoundError("Social auth link", provider.value)
            if account.remaining_factors_without({provider}) < 1:
                raise LastFactorError(str(account_id))

            await self.social_auth_link_repository.delete(link.id)

        logfire.info(
            "Provider unlinked", account_id=str(account_id), provider=provider.value
        )
        await self.audit_log.record(
            AuditEventType.ACCOUNT_CHANGE,
            "oauth_provider_unlinked",
            account_id=account_id,
            provider=provider,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def bulk_unlink(
        self,
        account_id: AccountId,
        providers: list[AuthProvider],
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> BulkUnlinkResult:
        """Remove several provider links, each independently.

        The last-factor check runs once, up front, against the links that
        are actually present. Providers without a link are reported as
        failed.

        Raises:
            NotFoundError: If the account does not exist
            LastFactorError: If the request would remove every factor
        """
        account = await self.account_repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account", str(account_id))
        if account.remaining_factors_without(set(providers)) < 1:
            raise LastFactorError(str(account_id))

        result = BulkUnlinkResult()
        for provider in dict.fromkeys(providers):
            try:
                async with self.unit_of_work.transaction():
                    link = await self.social_auth_link_repository.find_by_account_and_provider(
                        account_id, provider
                    )
                    if link is None:
                        raise NotFoundError("Social auth link", provider.value)
                    await self.social_auth_link_repository.delete(link.id)
            except NotFoundError as e:
                result.failed.append(provider)
                result.errors[provider.value] = str(e)
                await self.audit_log.record(
                    AuditEventType.ACCOUNT_CHANGE,
                    "oauth_provider_unlink_failed",
                    account_id=account_id,
                    provider=provider,
                    error=str(e),
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
                continue

            result.success.append(provider)
            await self.audit_log.record(
                AuditEventType.ACCOUNT_CHANGE,
                "oauth_provider_unlinked",
                account_id=account_id,
                provider=provider,
                ip_address=ip_address,
                user_agent=user_agent,
            )

        logfire.info(
            "Bulk unlink completed",
            account_id=str(account_id),
            unlinked=len(result.success),
            failed=len(result.failed),
        )
        return result
