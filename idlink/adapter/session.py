"""Session issuers."""

import logfire

from idlink.domain.model.account import Account
from idlink.domain.service.session_establisher import SessionIssuer
from idlink.domain.service.session_token_service import SessionTokenService


class JWTSessionIssuer(SessionIssuer):
    """Issues stateless session JWTs.

    Each token carries a fresh ``jti``; nothing from a previous or anonymous
    session is carried over.
    """

    def __init__(self, session_token_service: SessionTokenService) -> None:
        self.session_token_service = session_token_service

    async def issue(self, account: Account) -> str:
        token = self.session_token_service.create_token(
            account_id=str(account.id), username=account.username
        )
        logfire.info("Session issued", account_id=str(account.id))
        return token
