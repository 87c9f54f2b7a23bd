"""Pytest configuration and fixtures for askgate tests.

Test isolation strategy:
- Every test starts from an environment with no provider settings, so a
  developer's shell or .env cannot enable models behind the tests' back
- Settings are built explicitly per test via tests.helpers.make_settings
- Apps get an InMemoryKVStore and a real httpx.AsyncClient; outbound HTTP
  is intercepted with respx
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

os.environ["ASKGATE_ENV"] = "test"

import pytest
import structlog
from fastapi.testclient import TestClient

from askgate.config import Settings, clear_settings_cache
from askgate.logging import configure_logging
from askgate.services.kv import InMemoryKVStore
from tests.helpers import build_app, make_settings

# Loggers must not cache their processor chain, or log_sink cannot intercept them
configure_logging(cache_loggers=False)

_SETTINGS_ENV_VARS = [
    field.alias
    for field in Settings.model_fields.values()
    if field.alias and field.alias != "ASKGATE_ENV"
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch) -> Generator[None, None, None]:
    """Strip settings-related environment variables for every test."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ASKGATE_ENV", "test")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def kv_store() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def cloudflare_settings() -> Settings:
    """Only the cloudflare model available, via the direct REST API."""
    return make_settings(cloudflare_api_token="cf-test-token", account_id="acct123")


@pytest.fixture
def client_factory(kv_store):
    """Build a TestClient (lifespan started) for given settings.

    Clients are closed at teardown.
    """
    clients: list[TestClient] = []

    def _factory(settings: Settings, **kwargs) -> TestClient:
        app = build_app(settings, kv_store=kwargs.pop("kv_store", kv_store))
        client = TestClient(app, **kwargs)
        client.__enter__()
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(client_factory, cloudflare_settings) -> TestClient:
    return client_factory(cloudflare_settings)


@pytest.fixture
def log_sink():
    """Configure structlog to capture events into a list.

    Returns a list that will contain all emitted log event dicts.
    After the test, structlog is reset to normal.
    """
    events: list[dict] = []
    original_config = structlog.get_config()

    def capture_processor(logger, method_name, event_dict):
        events.append(event_dict.copy())
        raise structlog.DropEvent

    structlog.configure(
        processors=[capture_processor],
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    yield events

    structlog.configure(**original_config)
