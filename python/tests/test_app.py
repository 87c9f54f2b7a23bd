"""Tests for application wiring.

Covers:
- Static asset fallback for unmatched paths
- Plain-text 404 for unmatched paths without assets
- Lifespan-managed shared resources
- The uvicorn entrypoint module
"""

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from askgate.app import create_app
from askgate.services.answer_cache import AnswerCache
from askgate.services.llm import ProviderRouter
from tests.helpers import CLOUDFLARE_DIRECT_URL, cloudflare_answer, make_settings


@pytest.fixture
def assets_dir(tmp_path):
    (tmp_path / "index.html").write_text("<!doctype html><title>askgate</title>")
    (tmp_path / "app.js").write_text("console.log('askgate');")
    return tmp_path


class TestStaticAssets:
    """Unmatched paths fall through to STATIC_ASSETS_DIR."""

    def test_index_served_at_root(self, client_factory, assets_dir):
        client = client_factory(make_settings(static_assets_dir=str(assets_dir)))

        response = client.get("/")

        assert response.status_code == 200
        assert "<title>askgate</title>" in response.text
        assert response.headers["content-type"].startswith("text/html")

    def test_asset_file_served(self, client_factory, assets_dir):
        client = client_factory(make_settings(static_assets_dir=str(assets_dir)))

        response = client.get("/app.js")

        assert response.status_code == 200
        assert response.text == "console.log('askgate');"

    def test_missing_asset_is_plain_404(self, client_factory, assets_dir):
        client = client_factory(make_settings(static_assets_dir=str(assets_dir)))

        response = client.get("/nope.css")

        assert response.status_code == 404
        assert response.text == "Not found"

    def test_api_routes_take_precedence(self, client_factory, assets_dir):
        client = client_factory(
            make_settings(
                static_assets_dir=str(assets_dir),
                cloudflare_api_token="cf-test-token",
                account_id="acct123",
            )
        )

        with respx.mock(assert_all_called=False) as mock:
            mock.post(CLOUDFLARE_DIRECT_URL).respond(200, json=cloudflare_answer("4"))
            query = client.post("/query", json={"prompt": "2+2?"})

        assert client.get("/status").json()["ok"] is True
        assert query.json()["answer"] == "4"


class TestNotFound:
    def test_root_without_assets_is_plain_404(self, client):
        response = client.get("/")

        assert response.status_code == 404
        assert response.text == "Not found"
        assert response.headers["content-type"].startswith("text/plain")

    def test_docs_not_exposed(self, client):
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404


class TestLifespan:
    """Shared resources are created at startup and stored in app.state."""

    def test_state_populated(self):
        app = create_app(make_settings())

        with TestClient(app):
            assert isinstance(app.state.http_client, httpx.AsyncClient)
            assert isinstance(app.state.answer_cache, AnswerCache)
            assert isinstance(app.state.provider_router, ProviderRouter)

    def test_owned_client_closed_on_shutdown(self):
        app = create_app(make_settings())

        with TestClient(app):
            http_client = app.state.http_client

        assert http_client.is_closed

    def test_injected_resources_used_and_left_open(self, kv_store):
        http_client = httpx.AsyncClient()
        app = create_app(make_settings(), kv_store=kv_store, http_client=http_client)

        with TestClient(app):
            assert app.state.http_client is http_client
            assert app.state.kv_store is kv_store

        assert not http_client.is_closed


class TestEntrypoint:
    def test_main_module_exposes_app(self):
        from apps.api.main import app

        assert app.title == "askgate"
