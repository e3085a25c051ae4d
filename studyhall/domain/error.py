"""Domain layer errors."""

from studyhall.domain.value.types import ConflictReport


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class BusinessRuleViolationError(DomainError):
    """Business rule violation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class NotAuthorizedError(DomainError):
    """Raised when an account lacks the role required for an action."""

    def __init__(self, action: str, account_id: str):
        self.action = action
        self.account_id = account_id
        super().__init__(f"Account {account_id} is not authorized to {action}")


class UnsupportedProviderError(DomainError):
    """Raised for an unknown or unconfigured provider key."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unsupported OAuth provider: {provider}")


class AccountLinkConflictError(BusinessRuleViolationError):
    """Raised when a provider identity cannot be linked safely.

    Attributes:
        provider: Provider whose identity conflicts
        report: Conflict report, when produced by the pre-flight check
    """

    def __init__(
        self, provider: str, message: str | None = None, report: ConflictReport | None = None
    ):
        self.provider = provider
        self.report = report
        super().__init__(
            message
            or (
                f"This {provider} account cannot be linked: an account with this "
                f"email already uses a different {provider} identity"
            )
        )


class LastFactorError(BusinessRuleViolationError):
    """Raised when an unlink would leave an account with no way to sign in."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            "Cannot unlink the last authentication method. Please set a password first."
        )


class DuplicateSocialAuthLinkError(BusinessRuleViolationError):
    """Raised when a provider identity is already claimed by another link."""

    def __init__(self, provider: str, provider_user_id: str):
        self.provider = provider
        self.provider_user_id = provider_user_id
        super().__init__(
            f"{provider} identity {provider_user_id} is already linked to an account"
        )


class DecryptionError(DomainError):
    """Raised when a stored token ciphertext cannot be decrypted.

    The owning link is unusable and must be re-linked; retrying will not help.
    """

    pass


class ProviderError(DomainError):
    """Base error for provider-side HTTP and network failures.

    The message is generic and safe to show to clients. Raw provider detail
    is kept in ``diagnostic`` and only surfaced in non-production mode.
    """

    def __init__(self, provider: str, message: str, diagnostic: str | None = None):
        self.provider = provider
        self.diagnostic = diagnostic
        super().__init__(message)


class TokenExchangeError(ProviderError):
    """Code exchange or refresh against the provider token endpoint failed."""

    def __init__(self, provider: str, diagnostic: str | None = None):
        super().__init__(
            provider, f"Failed to exchange tokens with {provider}", diagnostic
        )


class UserInfoError(ProviderError):
    """Fetching the provider profile failed."""

    def __init__(self, provider: str, diagnostic: str | None = None):
        super().__init__(
            provider, f"Failed to fetch user info from {provider}", diagnostic
        )


class UserInfoUnsupportedError(ProviderError):
    """The provider has no profile endpoint to call after the exchange."""

    def __init__(self, provider: str):
        super().__init__(
            provider, f"User info endpoint not supported for {provider}"
        )
