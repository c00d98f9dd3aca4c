from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from simple_rest.config import Settings, get_settings
from simple_rest.main import create_app
from simple_rest.services.backend import set_backend_transport


ENV_VARS = ("VERSION", "BACKEND", "PORT", "HOST", "LOG_LEVEL", "METRICS_MAX_SAMPLES")


def _default_backend(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="Version: 9.9.9\n", headers={"Content-Type": "text/plain"})


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    set_backend_transport(httpx.MockTransport(_default_backend))

    yield

    set_backend_transport(None)
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
