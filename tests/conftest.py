"""Test configuration and fixtures."""

import os

import logfire

# Settings are read from the environment when the container builds them
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUTH__CREDENTIAL_HASH_ROUNDS", "4")
os.environ.setdefault("AUTH__REQUEST_TIMEOUT_SECONDS", "5")
os.environ.setdefault("PROVIDERS__DISCORD__CLIENT_SECRET", "discord-test-secret")
os.environ.setdefault("PROVIDERS__TELEGRAM__TYPE", "telegram")
os.environ.setdefault("PROVIDERS__TELEGRAM__CLIENT_SECRET", "123456789:telegram-test")

logfire.configure(send_to_logfire=False, console=False)
