"""Audit log query use case."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from studyhall.domain.service import AuditLog, AuditLogPage
from studyhall.domain.value import (
    AccountId,
    AuditEventType,
    AuditLogFilter,
    AuthProvider,
)


class GetAuditLogsRequest(BaseModel):
    """Audit log query for the signed-in account."""

    account_id: str
    provider: AuthProvider | None = None
    event_type: AuditEventType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class GetAuditLogsUseCase:
    """Use case for reading an account's own security events."""

    def __init__(self, audit_log: AuditLog) -> None:
        self.audit_log = audit_log

    async def execute(self, request: GetAuditLogsRequest) -> AuditLogPage:
        return await self.audit_log.query(
            AuditLogFilter(
                account_id=AccountId(UUID(request.account_id)),
                provider=request.provider,
                event_type=request.event_type,
                start_date=request.start_date,
                end_date=request.end_date,
                limit=request.limit,
                offset=request.offset,
            )
        )
