"""In-memory security audit event repository for testing."""

from studyhall.domain.model.audit_event import SecurityAuditEvent
from studyhall.domain.repository.audit_event import AuditEventRepository
from studyhall.domain.value import AuditLogFilter


class InMemoryAuditEventRepository(AuditEventRepository):
    """In-memory implementation of AuditEventRepository for testing.

    Never takes part in a unit of work, so events outlive rollbacks.
    """

    def __init__(self) -> None:
        self.events: list[SecurityAuditEvent] = []
        self.fail_appends = False

    async def append(self, event: SecurityAuditEvent) -> SecurityAuditEvent:
        if self.fail_appends:
            raise RuntimeError("Audit store unavailable")
        self.events.append(event)
        return event

    async def query(
        self, audit_filter: AuditLogFilter
    ) -> tuple[list[SecurityAuditEvent], int]:
        # Later appends win timestamp ties
        ordered = sorted(
            enumerate(self.events),
            key=lambda pair: (pair[1].timestamp, pair[0]),
            reverse=True,
        )
        matches = [e for _, e in ordered if self._matches(e, audit_filter)]
        start = audit_filter.offset
        return matches[start : start + audit_filter.limit], len(matches)

    def actions(self) -> list[str]:
        """Recorded actions in insertion order."""
        return [e.action for e in self.events]

    @staticmethod
    def _matches(event: SecurityAuditEvent, audit_filter: AuditLogFilter) -> bool:
        if audit_filter.account_id and event.account_id != audit_filter.account_id:
            return False
        if audit_filter.event_type and event.event_type != audit_filter.event_type:
            return False
        if (
            audit_filter.provider
            and event.details.get("provider") != audit_filter.provider.value
        ):
            return False
        if audit_filter.start_date and event.timestamp < audit_filter.start_date:
            return False
        if audit_filter.end_date and event.timestamp > audit_filter.end_date:
            return False
        return True
