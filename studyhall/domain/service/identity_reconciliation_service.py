"""Identity reconciliation domain service."""

import secrets
from datetime import datetime, timezone
from typing import assert_never
from uuid import uuid4

import logfire

from studyhall.domain.error import AccountLinkConflictError, NotFoundError
from studyhall.domain.model import (
    LINKED_TO_EXISTING_EMAIL,
    UNUSABLE_PASSWORD_PREFIX,
    Account,
    AccountSettings,
    ConflictDecision,
    ExistingLinkDecision,
    LinkToEmailDecision,
    NewAccountDecision,
    ReconciliationDecision,
    ReconciliationResult,
    SocialAuthLink,
)
from studyhall.domain.repository import (
    AccountRepository,
    AccountSettingsRepository,
    SocialAuthLinkRepository,
    UnitOfWork,
)
from studyhall.domain.value import (
    AccountId,
    AccountRole,
    AccountSettingsId,
    AccountSummary,
    AuditEventType,
    AuthProvider,
    ConflictReport,
    ConflictType,
    EmailDifferentProviderIdDetails,
    ProviderAlreadyLinkedDetails,
    SocialAuthLinkId,
    TokenSet,
    UserInfo,
)

from .audit_log_service import AuditLog
from .base import Service
from .token_cipher_service import TokenCipherService


def placeholder_email(provider: AuthProvider, provider_user_id: str) -> str:
    """Synthetic email for provider identities that shared none."""
    return f"{provider.value}_{provider_user_id}@oauth.local"


def split_name(name: str | None) -> tuple[str | None, str | None]:
    """Split a display name into first and last name."""
    if not name or not name.strip():
        return None, None
    parts = name.split()
    first = parts[0]
    last = " ".join(parts[1:]) or None
    return first, last


def _summary(account: Account) -> AccountSummary:
    return AccountSummary(
        id=account.id,
        email=account.email,
        first_name=account.first_name,
        last_name=account.last_name,
    )


class IdentityReconciliationService(Service):
    """Maps a verified provider identity onto exactly one platform account.

    Decisions are evaluated in priority order, first match wins:

    1. The provider identity is already linked: re-authenticate its owner.
    2. An account owns the identity's email and already uses a different
       identity at this provider: reject as a conflict.
    3. An account owns the email otherwise: link the identity to it.
    4. Nobody matches: create a new account.

    The decision and every write it implies run inside one unit of work.
    """

    def __init__(
        self,
        account_repository: AccountRepository,
        social_auth_link_repository: SocialAuthLinkRepository,
        account_settings_repository: AccountSettingsRepository,
        unit_of_work: UnitOfWork,
        token_cipher: TokenCipherService,
        audit_log: AuditLog,
    ) -> None:
        """Initialize reconciliation service.

        Args:
            account_repository: Account storage
            social_auth_link_repository: Link storage
            account_settings_repository: Settings storage
            unit_of_work: Atomic scope over the repositories above
            token_cipher: Encrypts provider tokens before storage
            audit_log: Security event trail
        """
        self.account_repository = account_repository
        self.social_auth_link_repository = social_auth_link_repository
        self.account_settings_repository = account_settings_repository
        self.unit_of_work = unit_of_work
        self.token_cipher = token_cipher
        self.audit_log = audit_log

    async def reconcile(
        self,
        provider: AuthProvider,
        user_info: UserInfo,
        tokens: TokenSet,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ReconciliationResult:
        """Resolve a provider callback into an account.

        Args:
            provider: Provider that authenticated the user
            user_info: Normalized provider identity
            tokens: Fresh provider tokens (plaintext)
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            Resolved account with new-user and linking flags

        Raises:
            AccountLinkConflictError: If the email owner already uses a
                different identity at this provider
            DuplicateSocialAuthLinkError: If a concurrent callback claimed
                the identity first
        """
        await self.audit_log.record(
            AuditEventType.AUTHENTICATION,
            "oauth_callback_attempt",
            provider=provider,
            provider_user_id=user_info.id,
            email=user_info.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        with logfire.span(
            "reconcile_identity", provider=provider.value, provider_user_id=user_info.id
        ):
            try:
                async with self.unit_of_work.transaction():
                    decision = await self.decide(provider, user_info)
                    result = await self._apply(
                        decision, provider, user_info, tokens, ip_address, user_agent
                    )
            except AccountLinkConflictError:
                raise
            except Exception as e:
                logfire.error(
                    "OAuth callback reconciliation failed",
                    provider=provider.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self.audit_log.record(
                    AuditEventType.AUTHENTICATION,
                    "oauth_callback_error",
                    provider=provider,
                    provider_user_id=user_info.id,
                    error=str(e),
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
                raise

            await self._audit_outcome(decision, result, provider, ip_address, user_agent)

            logfire.info(
                "OAuth identity reconciled",
                account_id=str(result.account.id),
                provider=provider.value,
                outcome=decision.kind,
            )
            return result

    async def decide(
        self, provider: AuthProvider, user_info: UserInfo
    ) -> ReconciliationDecision:
        """Pick the reconciliation outcome for an identity without writing.

        Args:
            provider: Provider that authenticated the user
            user_info: Normalized provider identity

        Returns:
            The first matching decision
        """
        link = await self.social_auth_link_repository.find_by_provider(
            provider, user_info.id
        )
        if link:
            return ExistingLinkDecision(link=link)

        email = user_info.email or placeholder_email(provider, user_info.id)
        account = await self.account_repository.find_by_email(email)
        if account is None:
            return NewAccountDecision()

        existing_link = account.link_for(provider)
        if existing_link and existing_link.provider_user_id != user_info.id:
            return ConflictDecision(account=account, existing_link=existing_link)

        return LinkToEmailDecision(account=account)

    async def _apply(
        self,
        decision: ReconciliationDecision,
        provider: AuthProvider,
        user_info: UserInfo,
        tokens: TokenSet,
        ip_address: str | None,
        user_agent: str | None,
    ) -> ReconciliationResult:
        match decision:
            case ExistingLinkDecision(link=link):
                await self.social_auth_link_repository.update_tokens(
                    link.id,
                    self.token_cipher.encrypt(tokens.access_token),
                    self.token_cipher.encrypt_optional(tokens.refresh_token)
                    or link.refresh_token_encrypted,
                    tokens.expires_at,
                )
                account = await self.account_repository.find_by_id(link.account_id)
                if account is None:
                    raise NotFoundError("Account", str(link.account_id))
                return ReconciliationResult(
                    account=account, is_new_user=False, linked_account=False
                )

            case NewAccountDecision():
                account = await self._create_account(provider, user_info)
                link = await self._create_link(account.id, provider, user_info, tokens)
                return ReconciliationResult(
                    account=account.model_copy(update={"social_auth_links": [link]}),
                    is_new_user=True,
                    linked_account=False,
                )

            case LinkToEmailDecision(account=account):
                link = await self._create_link(account.id, provider, user_info, tokens)
                return ReconciliationResult(
                    account=account.model_copy(
                        update={"social_auth_links": [*account.social_auth_links, link]}
                    ),
                    is_new_user=False,
                    linked_account=True,
                    conflict_resolution=LINKED_TO_EXISTING_EMAIL,
                )

            case ConflictDecision(account=account, existing_link=existing_link):
                logfire.warn(
                    "OAuth account conflict",
                    account_id=str(account.id),
                    provider=provider.value,
                )
                await self.audit_log.record(
                    AuditEventType.ACCOUNT_CHANGE,
                    "oauth_account_conflict",
                    account_id=account.id,
                    provider=provider,
                    conflictType="different_provider_id_same_email",
                    existingProviderUserId=existing_link.provider_user_id,
                    newProviderUserId=user_info.id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
                raise AccountLinkConflictError(provider.value)

            case _:
                assert_never(decision)

    async def _audit_outcome(
        self,
        decision: ReconciliationDecision,
        result: ReconciliationResult,
        provider: AuthProvider,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        match decision:
            case ExistingLinkDecision():
                await self.audit_log.record(
                    AuditEventType.AUTHENTICATION,
                    "oauth_login_success",
                    account_id=result.account.id,
                    provider=provider,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            case NewAccountDecision():
                await self.audit_log.record(
                    AuditEventType.AUTHENTICATION,
                    "oauth_user_created",
                    account_id=result.account.id,
                    provider=provider,
                    email=result.account.email,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            case LinkToEmailDecision():
                await self.audit_log.record(
                    AuditEventType.ACCOUNT_CHANGE,
                    "oauth_account_linked",
                    account_id=result.account.id,
                    provider=provider,
                    conflictResolution=LINKED_TO_EXISTING_EMAIL,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            case ConflictDecision():
                # Rejected before reaching here
                pass
            case _:
                assert_never(decision)

    async def check_account_conflicts(
        self,
        user_info: UserInfo,
        provider: AuthProvider,
        current_account_id: AccountId,
    ) -> ConflictReport:
        """Read-only pre-flight check before linking another provider.

        Args:
            user_info: Candidate provider identity
            provider: Provider of the candidate identity
            current_account_id: Already-authenticated account

        Returns:
            Conflict report; ``has_conflict`` is False when linking is safe
        """
        link = await self.social_auth_link_repository.find_by_provider(
            provider, user_info.id
        )
        if link:
            owner = await self.account_repository.find_by_id(link.account_id)
            if owner is None:
                raise NotFoundError("Account", str(link.account_id))
            return ConflictReport(
                has_conflict=True,
                conflict_type=ConflictType.PROVIDER_ALREADY_LINKED,
                conflict_details=ProviderAlreadyLinkedDetails(
                    linked_to_user=_summary(owner), linked_at=link.created_at
                ),
            )

        if user_info.email:
            email_owner = await self.account_repository.find_by_email(user_info.email)
            if email_owner and email_owner.id != current_account_id:
                existing_link = email_owner.link_for(provider)
                if existing_link and existing_link.provider_user_id != user_info.id:
                    return ConflictReport(
                        has_conflict=True,
                        conflict_type=ConflictType.EMAIL_DIFFERENT_PROVIDER_ID,
                        conflict_details=EmailDifferentProviderIdDetails(
                            existing_user=_summary(email_owner),
                            existing_provider_user_id=existing_link.provider_user_id,
                        ),
                    )

        return ConflictReport(has_conflict=False)

    async def link_provider(
        self,
        account_id: AccountId,
        provider: AuthProvider,
        user_info: UserInfo,
        tokens: TokenSet,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SocialAuthLink:
        """Attach another provider identity to an authenticated account.

        Args:
            account_id: Authenticated account
            provider: Provider to link
            user_info: Provider identity
            tokens: Provider tokens (plaintext)
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            The created link

        Raises:
            NotFoundError: If the account does not exist
            AccountLinkConflictError: If the identity is claimed, the email
                belongs to another identity, or the account already links
                this provider
        """
        with logfire.span(
            "link_provider", account_id=str(account_id), provider=provider.value
        ):
            async with self.unit_of_work.transaction():
                account = await self.account_repository.find_by_id(account_id)
                if account is None:
                    raise NotFoundError("Account", str(account_id))

                report = await self.check_account_conflicts(
                    user_info, provider, account_id
                )
                if report.has_conflict:
                    await self.audit_log.record(
                        AuditEventType.ACCOUNT_CHANGE,
                        "oauth_manual_link_conflict",
                        account_id=account_id,
                        provider=provider,
                        conflictType=report.conflict_type.value,
                        ip_address=ip_address,
                        user_agent=user_agent,
                    )
                    raise AccountLinkConflictError(
                        provider.value,
                        f"This {provider.value} account cannot be linked "
                        f"({report.conflict_type.value})",
                        report=report,
                    )

                if account.link_for(provider):
                    raise AccountLinkConflictError(
                        provider.value,
                        f"A {provider.value} account is already linked to this account",
                    )

                link = await self._create_link(account_id, provider, user_info, tokens)

            await self.audit_log.record(
                AuditEventType.ACCOUNT_CHANGE,
                "oauth_manual_link_success",
                account_id=account_id,
                provider=provider,
                provider_user_id=user_info.id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return link

    async def _create_account(
        self, provider: AuthProvider, user_info: UserInfo
    ) -> Account:
        first_name, last_name = split_name(user_info.name)
        now = datetime.now(timezone.utc)
        account = Account(
            id=AccountId(uuid4()),
            email=user_info.email or placeholder_email(provider, user_info.id),
            password_hash=UNUSABLE_PASSWORD_PREFIX + secrets.token_hex(32),
            role=AccountRole.PARENT,
            is_email_verified=True,
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now,
        )
        saved = await self.account_repository.save(account)
        await self.account_settings_repository.save(
            AccountSettings(id=AccountSettingsId(uuid4()), account_id=saved.id)
        )
        return saved

    async def _create_link(
        self,
        account_id: AccountId,
        provider: AuthProvider,
        user_info: UserInfo,
        tokens: TokenSet,
    ) -> SocialAuthLink:
        now = datetime.now(timezone.utc)
        link = SocialAuthLink(
            id=SocialAuthLinkId(uuid4()),
            account_id=account_id,
            provider=provider,
            provider_user_id=user_info.id,
            provider_email=user_info.email,
            provider_name=user_info.name,
            access_token_encrypted=self.token_cipher.encrypt(tokens.access_token),
            refresh_token_encrypted=self.token_cipher.encrypt_optional(
                tokens.refresh_token
            ),
            token_expires_at=tokens.expires_at,
            created_at=now,
            updated_at=now,
        )
        return await self.social_auth_link_repository.save(link)
