"""Shared fixtures."""

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI

from httpstime.server import create_app
from tests.settings import BASE_URL, SERVER_TIME


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def app() -> FastAPI:
    """Return an app whose clock is stuck at SERVER_TIME."""
    return create_app(clock=lambda: SERVER_TIME)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Return an HTTP client talking to the app in-process."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL) as client:
        yield client
