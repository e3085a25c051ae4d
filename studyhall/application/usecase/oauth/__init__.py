"""OAuth account linking use cases."""

from .audit_logs import GetAuditLogsUseCase
from .authorize import AuthorizeUseCase
from .callback import OAuthCallbackUseCase
from .check_conflicts import CheckConflictsUseCase
from .cleanup_tokens import CleanupTokensUseCase
from .link_provider import LinkProviderUseCase
from .list_providers import ListProvidersUseCase, ProviderStatusUseCase
from .refresh_tokens import RefreshProviderTokensUseCase
from .unlink_provider import BulkUnlinkUseCase, UnlinkProviderUseCase

__all__ = [
    "AuthorizeUseCase",
    "BulkUnlinkUseCase",
    "CheckConflictsUseCase",
    "CleanupTokensUseCase",
    "GetAuditLogsUseCase",
    "LinkProviderUseCase",
    "ListProvidersUseCase",
    "OAuthCallbackUseCase",
    "ProviderStatusUseCase",
    "RefreshProviderTokensUseCase",
    "UnlinkProviderUseCase",
]
