"""Security audit event repository interface."""

from abc import ABC, abstractmethod

from studyhall.domain.model.audit_event import SecurityAuditEvent
from studyhall.domain.value import AuditLogFilter


class AuditEventRepository(ABC):
    """Append-only store for security audit events.

    Appends must persist independently of any surrounding unit of work so
    that failure events survive a rolled-back transaction.
    """

    @abstractmethod
    async def append(self, event: SecurityAuditEvent) -> SecurityAuditEvent:
        """Append an event to the trail.

        Args:
            event: Event to record

        Returns:
            The recorded event
        """
        pass

    @abstractmethod
    async def query(
        self, audit_filter: AuditLogFilter
    ) -> tuple[list[SecurityAuditEvent], int]:
        """Query events, newest first.

        Args:
            audit_filter: Account, provider, event type, date range and paging

        Returns:
            Tuple of (page of events, total matching count)
        """
        pass
