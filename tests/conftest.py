"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shopgrid.config import settings
from shopgrid.main import create_app


@pytest.fixture
def app() -> Generator[FastAPI, None, None]:
    """Create test application instance."""
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing.

    The ``test`` host has a single label, so requests resolve to no
    tenant without touching the directory.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Headers carrying a valid admin key."""
    return {settings.admin_key_header: settings.secret_key}


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
