"""Shared fixtures for end-to-end tests."""

from collections.abc import Callable

import pytest
from dishka import AsyncContainer
from dishka.integrations.fastapi import FastapiProvider
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import Response

from idlink.config import AuthSettings
from idlink.interface.api.app import create_app
from tests.di import build_test_container
from tests.factories import sign_assertion


@pytest.fixture
def container() -> AsyncContainer:
    """Test container shared by every client of one test."""
    return build_test_container(extra=[FastapiProvider()])


@pytest.fixture
def app_instance(container: AsyncContainer) -> FastAPI:
    """Create app wired to the test container."""
    return create_app(container)


@pytest.fixture
def client_factory(app_instance: FastAPI) -> Callable[[], TestClient]:
    """Build independent clients, each with its own cookie jar."""
    return lambda: TestClient(app_instance)


@pytest.fixture
def client(client_factory: Callable[[], TestClient]) -> TestClient:
    """Create test client."""
    return client_factory()


@pytest.fixture
def login() -> Callable[..., Response]:
    """Run the login callback; the client keeps the session cookie."""

    def _login(
        client: TestClient, provider: str = "discord", sub: str = "42", **claims: str
    ) -> Response:
        assertion = sign_assertion(AuthSettings(), provider, sub, **claims)
        return client.get(
            "/auth/callback", params={"assertion": assertion}, follow_redirects=False
        )

    return _login
