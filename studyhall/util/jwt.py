"""JWT token utilities for first-party sessions."""

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from studyhall.config import AuthSettings
from studyhall.util.error import JWTError


class TokenPayload(BaseModel):
    """JWT token payload."""

    account_id: str
    email: str
    role: str
    exp: datetime


def create_token(account_id: str, email: str, role: str, settings: AuthSettings) -> str:
    """Create a session JWT for an account.

    Args:
        account_id: Account ID
        email: Account email
        role: Account role
        settings: Authentication settings

    Returns:
        Encoded JWT token
    """
    expiry = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expiry_minutes)

    payload = {
        "account_id": account_id,
        "email": email,
        "role": role,
        "exp": expiry,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: AuthSettings) -> TokenPayload:
    """Verify and decode a session JWT.

    Args:
        token: JWT token to verify
        settings: Authentication settings

    Returns:
        Token payload if valid

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise JWTError("Token has expired")
    except jwt.InvalidTokenError:
        raise JWTError("Invalid token")
