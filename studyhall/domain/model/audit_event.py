"""Security audit event entity."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from studyhall.domain.model.common import DomainModel
from studyhall.domain.value import AccountId, AuditEventId, AuditEventType


class SecurityAuditEvent(DomainModel):
    """Append-only security event.

    ``details`` carries the structured payload: provider, action,
    conflictType, error and so on. Events are never mutated or deleted.
    """

    id: AuditEventId
    event_type: AuditEventType
    account_id: Optional[AccountId] = None
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def action(self) -> Optional[str]:
        """The action recorded in the event details."""
        return self.details.get("action")
