"""JWT token utilities."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt
from pydantic import BaseModel

from idlink.config import AuthSettings


class TokenPayload(BaseModel):
    """Session token payload."""

    account_id: str
    username: str
    jti: str  # Unique per issued session
    exp: datetime


class JWTError(Exception):
    """JWT-related error."""

    pass


def create_token(account_id: str, username: str, settings: AuthSettings) -> str:
    """Create a session JWT for an account.

    Every call gets a new ``jti``, so a login never reuses a session identity.

    Args:
        account_id: Account ID
        username: Account username
        settings: Authentication settings

    Returns:
        Encoded JWT token
    """
    expiry = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expiry_days)

    payload = {
        "account_id": account_id,
        "username": username,
        "jti": uuid4().hex,
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
    except (jwt.InvalidTokenError, ValueError):
        raise JWTError("Invalid token")


def decode_assertion(token: str, settings: AuthSettings) -> dict[str, Any]:
    """Decode an assertion signed by the provider-verification step.

    Args:
        token: Compact JWT carrying the assertion claims
        settings: Authentication settings

    Returns:
        Assertion claims

    Raises:
        JWTError: If the signature is wrong, the token expired or is too old
    """
    try:
        claims = jwt.decode(
            token,
            settings.assertion_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise JWTError("Assertion has expired")
    except jwt.InvalidTokenError:
        raise JWTError("Invalid assertion signature")

    issued_at = datetime.fromtimestamp(claims["iat"], tz=timezone.utc)
    age = datetime.now(timezone.utc) - issued_at
    if age > timedelta(seconds=settings.assertion_max_age_seconds):
        raise JWTError("Assertion is too old")

    return claims
