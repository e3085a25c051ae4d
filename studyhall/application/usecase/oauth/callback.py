"""OAuth callback use case."""

import logfire
from pydantic import BaseModel

from studyhall.adapter.oauth.cache import PKCEStore
from studyhall.domain.error import ProviderError
from studyhall.domain.model import Account
from studyhall.domain.service import (
    AuditLog,
    IdentityReconciliationService,
    JWTService,
    ProviderRegistry,
)
from studyhall.domain.value import AccountRole, AuditEventType, AuthProvider, PostedIdentity

from .exchange import redeem_authorization_code


class CallbackRequest(BaseModel):
    """Provider callback parameters."""

    provider: str
    code: str
    state: str | None = None
    user: PostedIdentity | None = None  # Apple posts name/email on first sign-in
    ip_address: str | None = None
    user_agent: str | None = None


class AccountInfo(BaseModel):
    """Account fields returned to the client after sign-in."""

    id: str
    email: str
    first_name: str | None
    last_name: str | None
    role: AccountRole
    is_email_verified: bool

    @classmethod
    def from_account(cls, account: Account) -> "AccountInfo":
        return cls(
            id=str(account.id),
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role,
            is_email_verified=account.is_email_verified,
        )


class CallbackResponse(BaseModel):
    """Signed-in account with a first-party session token."""

    token: str
    account: AccountInfo
    is_new_user: bool
    linked_account: bool
    conflict_resolution: str | None
    provider: AuthProvider


class OAuthCallbackUseCase:
    """Use case for completing a provider sign-in."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        pkce_store: PKCEStore,
        reconciliation_service: IdentityReconciliationService,
        jwt_service: JWTService,
        audit_log: AuditLog,
    ) -> None:
        """Initialize callback use case.

        Args:
            provider_registry: Provider registry domain service
            pkce_store: Store for PKCE verifiers keyed by state
            reconciliation_service: Identity reconciliation domain service
            jwt_service: JWT session domain service
            audit_log: Security audit log
        """
        self.provider_registry = provider_registry
        self.pkce_store = pkce_store
        self.reconciliation_service = reconciliation_service
        self.jwt_service = jwt_service
        self.audit_log = audit_log

    async def execute(self, request: CallbackRequest) -> CallbackResponse:
        """Execute callback flow.

        Steps:
        1. Consume the PKCE verifier stored under the state
        2. Exchange the code for tokens and resolve the identity
        3. Reconcile the identity into one account
        4. Mint a session token for that account

        Raises:
            UnsupportedProviderError: If the provider is unknown
            ValidationError: If a required PKCE verifier is missing
            ProviderError: If the provider exchange or identity lookup fails
            AccountLinkConflictError: If the identity conflicts with an account
        """
        provider = self.provider_registry.parse_provider(request.provider)

        try:
            user_info, tokens = await redeem_authorization_code(
                self.provider_registry,
                self.pkce_store,
                provider,
                request.code,
                request.state,
                request.user,
            )
        except ProviderError as e:
            logfire.error(
                "OAuth provider exchange failed",
                provider=provider.value,
                error_type=type(e).__name__,
            )
            await self.audit_log.record(
                AuditEventType.AUTHENTICATION,
                "oauth_callback_error",
                provider=provider,
                error=str(e),
                ip_address=request.ip_address,
                user_agent=request.user_agent,
            )
            raise

        result = await self.reconciliation_service.reconcile(
            provider,
            user_info,
            tokens,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
        )

        token = self.jwt_service.create_session_token(result.account)

        return CallbackResponse(
            token=token,
            account=AccountInfo.from_account(result.account),
            is_new_user=result.is_new_user,
            linked_account=result.linked_account,
            conflict_resolution=result.conflict_resolution,
            provider=provider,
        )
