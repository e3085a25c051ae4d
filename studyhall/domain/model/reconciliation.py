"""Identity reconciliation outcomes.

The callback flow resolves an incoming provider identity into exactly one
of the decisions below, evaluated in priority order. The decision is a
tagged union so that every consumer handles each case explicitly.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from studyhall.domain.model.account import Account
from studyhall.domain.model.common import DomainModel
from studyhall.domain.model.social_auth_link import SocialAuthLink

LINKED_TO_EXISTING_EMAIL = "linked_to_existing_email"


class ExistingLinkDecision(DomainModel):
    """The provider identity is already linked: re-authenticate its owner."""

    kind: Literal["existing_link"] = "existing_link"
    link: SocialAuthLink


class NewAccountDecision(DomainModel):
    """Nobody owns the identity or its email: create a fresh account."""

    kind: Literal["new_account"] = "new_account"


class LinkToEmailDecision(DomainModel):
    """An account owns the email and has no competing link: attach to it."""

    kind: Literal["link_to_email"] = "link_to_email"
    account: Account


class ConflictDecision(DomainModel):
    """The email owner already uses a different identity at this provider."""

    kind: Literal["conflict"] = "conflict"
    account: Account
    existing_link: SocialAuthLink


ReconciliationDecision = Annotated[
    Union[
        ExistingLinkDecision,
        NewAccountDecision,
        LinkToEmailDecision,
        ConflictDecision,
    ],
    Field(discriminator="kind"),
]


class ReconciliationResult(DomainModel):
    """Resolved account returned to the caller for session minting."""

    account: Account
    is_new_user: bool
    linked_account: bool
    conflict_resolution: Optional[str] = None
