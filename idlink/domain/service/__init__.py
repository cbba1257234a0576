"""Domain services."""

from .account_provisioner import AccountProvisioner
from .base import Service
from .credential_service import CredentialService
from .link_decision import LinkDecisionEngine
from .provider_registry import ProviderRegistry
from .session_establisher import LoginThrottle, SessionEstablisher, SessionIssuer
from .session_token_service import SessionTokenService

__all__ = [
    "AccountProvisioner",
    "CredentialService",
    "LinkDecisionEngine",
    "LoginThrottle",
    "ProviderRegistry",
    "Service",
    "SessionEstablisher",
    "SessionIssuer",
    "SessionTokenService",
]
