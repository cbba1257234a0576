"""Session token domain service."""

from uuid import UUID

import logfire

from idlink.config import AuthSettings
from idlink.domain.value import AccountId
from idlink.util.jwt import JWTError, TokenPayload, create_token, verify_token

from .base import Service


class SessionTokenService(Service):
    """Domain service for session JWT operations."""

    def __init__(self, auth_settings: AuthSettings) -> None:
        """Initialize session token service.

        Args:
            auth_settings: Authentication settings
        """
        self.auth_settings = auth_settings

    def create_token(self, account_id: str, username: str) -> str:
        """Create a session token for an account.

        Args:
            account_id: Account ID
            username: Account username

        Returns:
            JWT token string
        """
        with logfire.span("session_token_service.create_token", account_id=account_id):
            token = create_token(account_id, username, self.auth_settings)
            logfire.info("Session token created", account_id=account_id)
            return token

    def verify_token(self, token: str) -> TokenPayload:
        """Verify a session token and extract its payload.

        Args:
            token: JWT token string

        Returns:
            Token payload

        Raises:
            JWTError: If token is invalid or expired
        """
        with logfire.span("session_token_service.verify_token"):
            try:
                payload = verify_token(token, self.auth_settings)
                logfire.info("Session token verified", account_id=payload.account_id)
                return payload
            except Exception as e:
                logfire.warn("Session token verification failed", error=str(e))
                raise

    def get_account_id_from_token(self, token: str | None) -> AccountId | None:
        """Extract the account ID from a session token without raising.

        Convenience for API routes that authenticate from the session cookie.

        Args:
            token: JWT token string (optional)

        Returns:
            Account ID if token is valid, None if token is missing or invalid
        """
        if not token:
            return None

        try:
            payload = self.verify_token(token)
            return AccountId(UUID(payload.account_id))
        except (JWTError, ValueError) as e:
            # Invalid or expired token, treat as unauthenticated
            logfire.debug(
                "Session token rejected, treating as unauthenticated", error=str(e)
            )
            return None
