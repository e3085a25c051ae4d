"""Social auth link entity.

Binds one platform account to one provider identity and carries the
provider tokens in encrypted form.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from studyhall.domain.model.common import DomainModel
from studyhall.domain.value import (
    AccountId,
    AuthProvider,
    EncryptedToken,
    SocialAuthLinkId,
)


class SocialAuthLink(DomainModel):
    """Provider identity linked to an account.

    The pair (provider, provider_user_id) is globally unique: at most one
    account may claim a given provider identity.
    """

    id: SocialAuthLinkId
    account_id: AccountId
    provider: AuthProvider
    provider_user_id: str
    provider_email: Optional[str] = None
    provider_name: Optional[str] = None
    access_token_encrypted: EncryptedToken
    refresh_token_encrypted: Optional[EncryptedToken] = None
    token_expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
