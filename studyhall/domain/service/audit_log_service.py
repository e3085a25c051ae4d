"""Security audit log domain service."""

from typing import Any
from uuid import uuid4

import logfire
from pydantic import BaseModel

from studyhall.domain.model.audit_event import SecurityAuditEvent
from studyhall.domain.repository import AuditEventRepository
from studyhall.domain.value import (
    AccountId,
    AuditEventId,
    AuditEventType,
    AuditLogFilter,
    AuthProvider,
)

from .base import Service


class AuditLogPage(BaseModel):
    """One page of audit events plus the total match count."""

    logs: list[SecurityAuditEvent]
    total: int


class AuditLog(Service):
    """Append-only trail of security events.

    Recording is best-effort: a failure to write an audit event is logged
    and never replaces the outcome being audited.
    """

    def __init__(self, audit_event_repository: AuditEventRepository) -> None:
        """Initialize audit log.

        Args:
            audit_event_repository: Store that persists independently of
                the caller's unit of work
        """
        self.audit_event_repository = audit_event_repository

    async def record(
        self,
        event_type: AuditEventType,
        action: str,
        *,
        account_id: AccountId | None = None,
        provider: AuthProvider | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        **details: Any,
    ) -> SecurityAuditEvent | None:
        """Record a security event.

        Args:
            event_type: Event category
            action: Machine-readable action name (e.g. ``oauth_login_success``)
            account_id: Affected account, if known
            provider: OAuth provider involved, if any
            ip_address: Client IP address
            user_agent: Client user agent
            **details: Extra structured payload

        Returns:
            The recorded event, or None if it could not be written
        """
        payload: dict[str, Any] = {"action": action, **details}
        if provider is not None:
            payload["provider"] = provider.value

        event = SecurityAuditEvent(
            id=AuditEventId(uuid4()),
            event_type=event_type,
            account_id=account_id,
            details=payload,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        try:
            return await self.audit_event_repository.append(event)
        except Exception as e:
            logfire.error(
                "Failed to record audit event",
                action=action,
                event_type=event_type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def query(self, audit_filter: AuditLogFilter) -> AuditLogPage:
        """Query audit events, newest first.

        Args:
            audit_filter: Account, provider, event type, date range and paging

        Returns:
            Page of events with total count
        """
        with logfire.span(
            "audit_log.query",
            limit=audit_filter.limit,
            offset=audit_filter.offset,
        ):
            events, total = await self.audit_event_repository.query(audit_filter)
            return AuditLogPage(logs=events, total=total)
