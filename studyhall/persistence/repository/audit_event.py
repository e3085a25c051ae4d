"""Security audit event repository implementation using PostgreSQL."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studyhall.domain.model.audit_event import SecurityAuditEvent
from studyhall.domain.repository.audit_event import AuditEventRepository
from studyhall.domain.value import AuditLogFilter
from studyhall.persistence.mappers import audit_event_to_dict, row_to_audit_event
from studyhall.persistence.tables import security_audit_events_table


class PostgresAuditEventRepository(AuditEventRepository):
    """PostgreSQL implementation of AuditEventRepository.

    Every append runs in its own short session and commits immediately, so
    an event survives the rollback of the request that produced it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Factory for sessions independent of the request
        """
        self.session_factory = session_factory

    async def append(self, event: SecurityAuditEvent) -> SecurityAuditEvent:
        stmt = security_audit_events_table.insert().values(**audit_event_to_dict(event))
        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(stmt)
        return event

    async def query(
        self, audit_filter: AuditLogFilter
    ) -> tuple[list[SecurityAuditEvent], int]:
        table = security_audit_events_table
        conditions = []
        if audit_filter.account_id is not None:
            conditions.append(table.c.account_id == audit_filter.account_id)
        if audit_filter.event_type is not None:
            conditions.append(table.c.event_type == audit_filter.event_type.value)
        if audit_filter.provider is not None:
            conditions.append(
                table.c.details["provider"].as_string() == audit_filter.provider.value
            )
        if audit_filter.start_date is not None:
            conditions.append(table.c.timestamp >= audit_filter.start_date)
        if audit_filter.end_date is not None:
            conditions.append(table.c.timestamp <= audit_filter.end_date)

        count_stmt = select(func.count()).select_from(table).where(*conditions)
        page_stmt = (
            select(table)
            .where(*conditions)
            .order_by(table.c.timestamp.desc())
            .limit(audit_filter.limit)
            .offset(audit_filter.offset)
        )

        async with self.session_factory() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            result = await session.execute(page_stmt)
            events = [row_to_audit_event(dict(row)) for row in result.mappings().all()]

        return events, total
