"""JWT session domain service."""

import logfire

from studyhall.config import AuthSettings
from studyhall.domain.model.account import Account
from studyhall.util.error import JWTError
from studyhall.util.jwt import TokenPayload, create_token, verify_token

from .base import Service


class JWTService(Service):
    """Mints and verifies first-party session tokens."""

    def __init__(self, auth_settings: AuthSettings) -> None:
        """Initialize JWT service.

        Args:
            auth_settings: Authentication settings
        """
        self.auth_settings = auth_settings

    def create_session_token(self, account: Account) -> str:
        """Create a session token for an account.

        Args:
            account: Resolved account

        Returns:
            JWT token string
        """
        with logfire.span("jwt_service.create_token", account_id=str(account.id)):
            return create_token(
                str(account.id), account.email, account.role.value, self.auth_settings
            )

    def verify(self, token: str) -> TokenPayload:
        """Verify a session token.

        Raises:
            JWTError: If the token is invalid or expired
        """
        try:
            return verify_token(token, self.auth_settings)
        except JWTError as e:
            logfire.info("Session token rejected", reason=str(e))
            raise
