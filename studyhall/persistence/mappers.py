"""Mappers for converting between database rows and domain models.

Domain models are immutable Pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from studyhall.domain.model import (
    Account,
    AccountSettings,
    SecurityAuditEvent,
    SocialAuthLink,
)
from studyhall.domain.value import (
    AccountId,
    AccountRole,
    AccountSettingsId,
    AuditEventId,
    AuditEventType,
    AuthProvider,
    EncryptedToken,
    SocialAuthLinkId,
)


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def row_to_account(
    row: Dict[str, Any], links: Optional[list[SocialAuthLink]] = None
) -> Account:
    """Convert database row to Account domain model.

    Args:
        row: Database row as dict
        links: The account's social auth links

    Returns:
        Account domain model
    """
    return Account(
        id=AccountId(_uuid(row["id"])),
        email=row["email"],
        password_hash=row.get("password_hash"),
        role=AccountRole(row["role"]),
        is_email_verified=row["is_email_verified"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
        social_auth_links=links or [],
    )


def account_to_dict(account: Account) -> Dict[str, Any]:
    """Convert Account domain model to database dict.

    Links are stored in their own table and are not included.
    """
    data = account.model_dump(exclude={"social_auth_links"})
    data["role"] = account.role.value
    return data


def row_to_social_auth_link(row: Dict[str, Any]) -> SocialAuthLink:
    """Convert database row to SocialAuthLink domain model."""
    refresh_token = row.get("refresh_token_encrypted")
    return SocialAuthLink(
        id=SocialAuthLinkId(_uuid(row["id"])),
        account_id=AccountId(_uuid(row["account_id"])),
        provider=AuthProvider(row["provider"]),
        provider_user_id=row["provider_user_id"],
        provider_email=row.get("provider_email"),
        provider_name=row.get("provider_name"),
        access_token_encrypted=EncryptedToken(row["access_token_encrypted"]),
        refresh_token_encrypted=EncryptedToken(refresh_token) if refresh_token else None,
        token_expires_at=_utc(row.get("token_expires_at")),
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
    )


def social_auth_link_to_dict(link: SocialAuthLink) -> Dict[str, Any]:
    """Convert SocialAuthLink domain model to database dict."""
    data = link.model_dump()
    data["provider"] = link.provider.value
    return data


def row_to_account_settings(row: Dict[str, Any]) -> AccountSettings:
    """Convert database row to AccountSettings domain model."""
    return AccountSettings(
        id=AccountSettingsId(_uuid(row["id"])),
        account_id=AccountId(_uuid(row["account_id"])),
        theme=row["theme"],
        language=row["language"],
        email_notifications=row["email_notifications"],
        weekly_progress_reports=row["weekly_progress_reports"],
        created_at=_utc(row["created_at"]),
        updated_at=_utc(row["updated_at"]),
    )


def account_settings_to_dict(settings: AccountSettings) -> Dict[str, Any]:
    """Convert AccountSettings domain model to database dict."""
    return settings.model_dump()


def row_to_audit_event(row: Dict[str, Any]) -> SecurityAuditEvent:
    """Convert database row to SecurityAuditEvent domain model."""
    account_id = row.get("account_id")
    return SecurityAuditEvent(
        id=AuditEventId(_uuid(row["id"])),
        event_type=AuditEventType(row["event_type"]),
        account_id=AccountId(_uuid(account_id)) if account_id else None,
        details=row.get("details") or {},
        ip_address=row.get("ip_address"),
        user_agent=row.get("user_agent"),
        timestamp=_utc(row["timestamp"]),
    )


def audit_event_to_dict(event: SecurityAuditEvent) -> Dict[str, Any]:
    """Convert SecurityAuditEvent domain model to database dict.

    Details are dumped in JSON mode so the column only sees JSON types.
    """
    data = event.model_dump(exclude={"details"})
    data["event_type"] = event.event_type.value
    data["details"] = event.model_dump(mode="json", include={"details"})["details"]
    return data
