"""Expired token cleanup use case."""

from pydantic import BaseModel

from studyhall.domain.error import NotAuthorizedError
from studyhall.domain.service import CleanupReport, TokenLifecycleManager
from studyhall.domain.value import AccountRole


class CleanupTokensRequest(BaseModel):
    """Cleanup trigger from an authenticated account."""

    account_id: str
    role: AccountRole


class CleanupTokensUseCase:
    """Use case for running the expired token sweep on request."""

    def __init__(self, token_lifecycle: TokenLifecycleManager) -> None:
        self.token_lifecycle = token_lifecycle

    async def execute(self, request: CleanupTokensRequest) -> CleanupReport:
        """Run the sweep.

        Raises:
            NotAuthorizedError: If the caller is not a parent account
        """
        if request.role != AccountRole.PARENT:
            raise NotAuthorizedError("clean up provider tokens", request.account_id)
        return await self.token_lifecycle.cleanup_expired_tokens()
