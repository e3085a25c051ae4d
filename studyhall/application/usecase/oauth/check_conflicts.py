"""Pre-flight conflict check use case."""

from uuid import UUID

from pydantic import BaseModel

from studyhall.domain.service import IdentityReconciliationService, ProviderRegistry
from studyhall.domain.value import AccountId, ConflictReport, UserInfo


class CheckConflictsRequest(BaseModel):
    """Candidate identity to check against the signed-in account."""

    account_id: str
    provider: str
    user_info: UserInfo


class CheckConflictsUseCase:
    """Use case for checking whether an identity can be linked safely."""

    def __init__(
        self,
        provider_registry: ProviderRegistry,
        reconciliation_service: IdentityReconciliationService,
    ) -> None:
        self.provider_registry = provider_registry
        self.reconciliation_service = reconciliation_service

    async def execute(self, request: CheckConflictsRequest) -> ConflictReport:
        provider = self.provider_registry.parse_provider(request.provider)
        return await self.reconciliation_service.check_account_conflicts(
            request.user_info, provider, AccountId(UUID(request.account_id))
        )
