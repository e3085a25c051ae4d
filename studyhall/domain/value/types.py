"""Domain value objects for StudyHall authentication.

Value objects are immutable and defined by their values, not identity.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import Field, field_validator

from studyhall.domain.value.common import RootValueObject, ValueObject
from studyhall.domain.value.identifiers import AccountId


class AuthProvider(str, Enum):
    """Supported social authentication providers."""

    GOOGLE = "google"
    APPLE = "apple"
    INSTAGRAM = "instagram"


class AccountRole(str, Enum):
    """Platform account roles."""

    PARENT = "PARENT"
    CHILD = "CHILD"


class AuditEventType(str, Enum):
    """Category of a security audit event."""

    AUTHENTICATION = "AUTHENTICATION"
    ACCOUNT_CHANGE = "ACCOUNT_CHANGE"
    ACCESS_CONTROL = "ACCESS_CONTROL"


class ConflictType(str, Enum):
    """Kind of identity conflict found by the pre-flight link check."""

    NONE = "none"
    PROVIDER_ALREADY_LINKED = "provider_already_linked"
    EMAIL_DIFFERENT_PROVIDER_ID = "email_different_provider_id"


class TokenStatus(str, Enum):
    """Freshness of a stored provider access token."""

    NO_EXPIRY = "no_expiry"
    EXPIRED = "expired"
    EXPIRES_SOON = "expires_soon"
    VALID = "valid"


class EncryptedToken(RootValueObject[str]):
    """Ciphertext of a provider access or refresh token.

    Plaintext tokens never get wrapped in this type; only the token cipher
    produces instances.
    """

    @field_validator("root")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty ciphertexts."""
        if not v:
            raise ValueError("Encrypted token cannot be empty")
        return v


class TokenSet(ValueObject):
    """Provider tokens returned by a code exchange or refresh.

    Attributes:
        access_token: Plaintext access token
        refresh_token: Plaintext refresh token, if the provider issued one
        expires_at: Absolute expiry computed from ``expires_in`` at call time
        id_token: OpenID Connect ID token (Apple returns identity claims here)
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    id_token: str | None = None


class UserInfo(ValueObject):
    """Provider identity normalized across providers.

    Attributes:
        id: Opaque provider user ID, unique per provider
        email: Email address, if the provider shared one
        name: Display name (Instagram username is mapped here)
        picture: Avatar URL
    """

    id: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Provider user IDs must be non-empty."""
        if not v:
            raise ValueError("Provider user ID cannot be empty")
        return v


class PKCEChallenge(ValueObject):
    """PKCE verifier and its S256 challenge."""

    code_verifier: str
    code_challenge: str
    code_challenge_method: Literal["S256"] = "S256"


class AccountSummary(ValueObject):
    """Minimal public view of an account used in conflict reports."""

    id: AccountId
    email: str
    first_name: str | None = None
    last_name: str | None = None


class ProviderAlreadyLinkedDetails(ValueObject):
    """The provider identity is already claimed by an account."""

    linked_to_user: AccountSummary
    linked_at: datetime


class EmailDifferentProviderIdDetails(ValueObject):
    """Another account owns the email under a different provider identity."""

    existing_user: AccountSummary
    existing_provider_user_id: str


class ConflictReport(ValueObject):
    """Result of the read-only pre-flight conflict check."""

    has_conflict: bool
    conflict_type: ConflictType = ConflictType.NONE
    conflict_details: (
        ProviderAlreadyLinkedDetails | EmailDifferentProviderIdDetails | None
    ) = None


class AuditLogFilter(ValueObject):
    """Filter and pagination for audit event queries."""

    account_id: AccountId | None = None
    provider: AuthProvider | None = None
    event_type: AuditEventType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class PostedIdentity(ValueObject):
    """Identity material posted by the provider straight to the callback.

    Apple sends a ``user`` JSON object (name and email) in its form-post on
    the very first authorization only.
    """

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
