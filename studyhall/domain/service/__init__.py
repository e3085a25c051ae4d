"""Domain services."""

from .audit_log_service import AuditLog, AuditLogPage
from .base import Service
from .identity_reconciliation_service import IdentityReconciliationService
from .jwt_service import JWTService
from .provider_registry import ProviderClient, ProviderRegistry
from .token_cipher_service import TokenCipherService
from .token_lifecycle_service import (
    BulkUnlinkResult,
    CleanupFailure,
    CleanupReport,
    LinkedProviderStatus,
    TokenLifecycleManager,
)

__all__ = [
    "AuditLog",
    "AuditLogPage",
    "BulkUnlinkResult",
    "CleanupFailure",
    "CleanupReport",
    "IdentityReconciliationService",
    "JWTService",
    "LinkedProviderStatus",
    "ProviderClient",
    "ProviderRegistry",
    "Service",
    "TokenCipherService",
    "TokenLifecycleManager",
]
