"""Pytest fixtures and shared test configuration.

Fixtures:
    - fake_provider: In-memory thread provider (no network)
    - app: FastAPI app with the provider dependency overridden
    - async_client: HTTPX client for API testing
    - api_client: ChatApiClient talking to the app over ASGI
    - storage: Plain dict standing in for client-side storage
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api import create_app
from src.assistant.provider import get_assistant_provider
from src.client.api import ChatApiClient
from tests.fakes import FakeProvider


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def app(fake_provider: FakeProvider) -> FastAPI:
    """Create an app whose routes use the fake provider."""
    application = create_app()
    application.dependency_overrides[get_assistant_provider] = lambda: fake_provider
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def api_client(async_client: AsyncClient) -> ChatApiClient:
    return ChatApiClient(http_client=async_client)


@pytest.fixture
def storage() -> dict:
    return {}
