"""Credential domain service."""

import secrets

import bcrypt

from .base import Service


class CredentialService(Service):
    """Generates and hashes account credentials.

    Accounts provisioned from an external login get a random secret that is
    hashed immediately and never surfaced, so the account can only be used
    through its linked identity until the owner sets a password.
    """

    def __init__(self, hash_rounds: int = 12) -> None:
        """Initialize credential service.

        Args:
            hash_rounds: bcrypt cost factor
        """
        self.hash_rounds = hash_rounds

    def generate_secret(self) -> str:
        """Generate a random, unguessable secret."""
        return secrets.token_urlsafe(32)

    def hash_secret(self, secret: str) -> str:
        """Hash a secret with bcrypt.

        Args:
            secret: Plain secret

        Returns:
            bcrypt hash as text
        """
        return bcrypt.hashpw(
            secret.encode(), bcrypt.gensalt(rounds=self.hash_rounds)
        ).decode()

    def verify_secret(self, secret: str, credential_hash: str) -> bool:
        """Check a secret against a stored hash."""
        return bcrypt.checkpw(secret.encode(), credential_hash.encode())

    def create_unusable_credential(self) -> str:
        """Hash a fresh random secret and forget the secret."""
        return self.hash_secret(self.generate_secret())
