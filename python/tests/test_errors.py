"""Tests for error handling and error bodies.

Verifies:
- Every error kind maps to the correct HTTP status
- Provider errors carry upstream status and a truncated body
- Error body shape is flat and omits absent fields
- Unknown exceptions return internal_error with 500 and no details
- Unmatched paths return plain-text 404
- Unclassified errors in the full app still carry CORS and X-Request-ID
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from askgate.errors import (
    KIND_TO_STATUS,
    MAX_UPSTREAM_BODY_CHARS,
    AuthError,
    ConfigMissingError,
    ErrorKind,
    GatewayError,
    InvalidRequestError,
    PolicyViolationError,
    ProviderError,
    truncate_body,
)
from askgate.responses import (
    error_response,
    gateway_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
)
from askgate.services.answer_cache import AnswerCache
from tests.helpers import make_settings


class TestErrorKindStatus:
    """Status mapping for every kind."""

    @pytest.mark.parametrize(
        "kind,status",
        [
            (ErrorKind.INVALID_REQUEST, 400),
            (ErrorKind.AUTH_ERROR, 401),
            (ErrorKind.CONFIG_MISSING, 400),
            (ErrorKind.PROVIDER_ERROR, 502),
            (ErrorKind.INTERNAL_ERROR, 500),
            (ErrorKind.POLICY_VIOLATION, 501),
        ],
    )
    def test_status(self, kind, status):
        assert KIND_TO_STATUS[kind] == status
        assert GatewayError(kind, "x").status_code == status

    def test_every_kind_is_mapped(self):
        assert set(KIND_TO_STATUS) == set(ErrorKind)

    def test_subclasses_carry_their_kind(self):
        assert InvalidRequestError().kind == ErrorKind.INVALID_REQUEST
        assert AuthError().kind == ErrorKind.AUTH_ERROR
        assert ConfigMissingError("m").kind == ErrorKind.CONFIG_MISSING
        assert PolicyViolationError("m").kind == ErrorKind.POLICY_VIOLATION
        assert ProviderError("m").kind == ErrorKind.PROVIDER_ERROR


class TestProviderError:
    """Upstream diagnostics on provider errors."""

    def test_details_include_upstream_status_and_body(self):
        e = ProviderError("boom", upstream_status=503, upstream_body="overloaded")
        assert e.details == {"upstream_status": 503, "upstream_body": "overloaded"}

    def test_long_body_is_truncated(self):
        e = ProviderError("boom", upstream_status=500, upstream_body="x" * 1000)
        assert e.upstream_body == "x" * MAX_UPSTREAM_BODY_CHARS + "..."
        assert e.details["upstream_body"] == e.upstream_body

    def test_explicit_details_win(self):
        e = ProviderError("boom", upstream_status=500, details={"tried": []})
        assert e.details == {"tried": []}

    def test_no_upstream_status_no_details(self):
        assert ProviderError("timed out").details is None

    def test_truncate_short_body_unchanged(self):
        assert truncate_body("short") == "short"


class TestErrorResponse:
    """Error body format."""

    def test_minimal_shape(self):
        body = error_response(ErrorKind.INVALID_REQUEST, "Invalid JSON body")
        assert body == {"error": "Invalid JSON body", "code": "invalid_request"}

    def test_model_and_details_included_when_present(self):
        body = error_response(
            ErrorKind.PROVIDER_ERROR, "bad", model="openai", details={"upstream_status": 500}
        )
        assert body == {
            "error": "bad",
            "code": "provider_error",
            "model": "openai",
            "details": {"upstream_status": 500},
        }

    def test_code_is_string(self):
        body = error_response(ErrorKind.AUTH_ERROR, "no")
        assert isinstance(body["code"], str)


def _handler_app() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/policy")
    async def policy():
        raise PolicyViolationError("Direct calls disabled", model="gemini")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret detail sk-12345")

    return app


class TestExceptionHandlers:
    """Handlers registered on a bare app."""

    def test_gateway_error_serialized(self):
        client = TestClient(_handler_app())
        response = client.get("/policy")

        assert response.status_code == 501
        assert response.json() == {
            "error": "Direct calls disabled",
            "code": "policy_violation",
            "model": "gemini",
        }

    def test_unhandled_exception_is_generic_500(self):
        client = TestClient(_handler_app(), raise_server_exceptions=False)
        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body == {"error": "Internal server error", "code": "internal_error"}
        assert "sk-12345" not in response.text

    def test_unknown_path_is_plain_text_404(self):
        client = TestClient(_handler_app())
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.text == "Not found"
        assert response.headers["content-type"].startswith("text/plain")

    def test_wrong_method_is_json_error(self):
        client = TestClient(_handler_app())
        response = client.post("/policy")

        assert response.status_code == 405
        assert response.json()["code"] == "invalid_request"


class TestUnhandledErrorsInApp:
    """Unclassified failures inside the full middleware stack."""

    @pytest.fixture
    def failing_cache(self, monkeypatch):
        async def broken_get(self, key):
            raise RuntimeError("cache exploded sk-12345")

        monkeypatch.setattr(AnswerCache, "get", broken_get)

    def test_500_carries_cors_and_request_id(self, client, failing_cache):
        response = client.post(
            "/query",
            json={"prompt": "2+2?"},
            headers={"Origin": "https://app.example", "X-Request-ID": "trace-500"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "internal_error"}
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["X-Request-ID"] == "trace-500"
        assert "sk-12345" not in response.text

    def test_500_echoes_allowlisted_origin(self, client_factory, failing_cache):
        client = client_factory(
            make_settings(
                cloudflare_api_token="cf-test-token",
                account_id="acct123",
                allowed_origins="https://app.example",
            )
        )

        response = client.post(
            "/query", json={"prompt": "2+2?"}, headers={"Origin": "https://app.example"}
        )

        assert response.status_code == 500
        assert response.headers["access-control-allow-origin"] == "https://app.example"
        assert "X-Request-ID" in response.headers
