"""
Pytest fixtures for the secret relay.

Settings are always built from literal environment dicts so tests never depend
on the environment of the machine running them.
"""
from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings, load_settings
from app.main import create_app

TOKEN = "0123456789abcdef"


@pytest.fixture
def base_env() -> Dict[str, str]:
    return {"SERVICE_API_TOKEN": TOKEN}


@pytest.fixture
def make_settings(base_env) -> Callable[..., Settings]:
    def _make(**env: str) -> Settings:
        return load_settings({**base_env, **env})
    return _make


@pytest.fixture
def make_client(base_env) -> Generator[Callable[..., TestClient], None, None]:
    """
    Build a TestClient around a fresh app.

    `env` feeds both startup settings and the per-request chat database scan,
    like os.environ does in production.
    """
    clients = []

    def _make(env: Dict[str, str] | None = None, **kwargs) -> TestClient:
        full_env = {**base_env, **(env or {})}
        app = create_app(load_settings(full_env), environ=full_env)
        c = TestClient(app, **kwargs)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"x-service-token": TOKEN}
