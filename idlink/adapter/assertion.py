"""Decoding of signed provider assertions.

The provider-verification step (OAuth code exchange, Telegram widget hash
check) runs upstream and hands the verified identity over as a short-lived
JWT signed with ``auth.assertion_secret``. Claims:

    provider      provider key, e.g. "discord"
    sub           provider-assigned account ID
    email         optional
    nickname      optional
    name          optional display name
    iat           issue time, required
"""

from typing import Any

import logfire

from idlink.adapter.error import AssertionDecodeError
from idlink.config import AuthSettings
from idlink.domain.value import ProviderAssertion
from idlink.util.jwt import JWTError, decode_assertion


def _optional_claim(claims: dict[str, Any], name: str) -> str | None:
    value = claims.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class AssertionDecoder:
    """Turns a signed assertion token into a ProviderAssertion."""

    def __init__(self, auth_settings: AuthSettings) -> None:
        self.auth_settings = auth_settings

    def decode(self, token: str) -> ProviderAssertion:
        """Verify the signature and map the claims.

        Args:
            token: Signed assertion token

        Returns:
            Provider assertion; may still be incomplete, the domain checks that

        Raises:
            AssertionDecodeError: If the token is not a valid, fresh assertion
        """
        try:
            claims = decode_assertion(token, self.auth_settings)
        except JWTError as e:
            logfire.warn("Assertion token rejected", error=str(e))
            raise AssertionDecodeError(str(e)) from e

        return ProviderAssertion(
            provider=str(claims.get("provider") or "").strip().lower(),
            provider_id=str(claims.get("sub") or "").strip(),
            email=_optional_claim(claims, "email"),
            nickname=_optional_claim(claims, "nickname"),
            display_name=_optional_claim(claims, "name"),
        )
