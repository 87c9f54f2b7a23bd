"""Test helpers for settings, apps, credentials, and provider payloads.

Provides:
- Settings construction isolated from the environment and .env files
- App construction with request-id middleware, as in apps/api/main.py
- Throwaway RSA keys and service-account JSON for the OAuth tests
- Canned provider response bodies
"""

import json

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI

from askgate.app import add_request_id_middleware, create_app
from askgate.config import Settings
from askgate.services.kv import KVStore

TEST_CLIENT_EMAIL = "askgate-test@test-project.iam.gserviceaccount.com"

CLOUDFLARE_DIRECT_URL = (
    "https://api.cloudflare.com/client/v4/accounts/acct123/ai/run/@cf/meta/llama-2-7b-chat-fp16"
)
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
TOKEN_URL = "https://oauth2.googleapis.com/token"

VERTEX_SETTINGS = {
    "gcp_project_id": "test-project",
    "vertex_ai_location": "us-central1",
}
VERTEX_URL = (
    "https://us-central1-aiplatform.googleapis.com/v1/projects/test-project"
    "/locations/us-central1/publishers/google/models/gemini-1.5-flash:generateContent"
)


def make_settings(**overrides) -> Settings:
    """Settings from keyword overrides only (field names, not env aliases)."""
    return Settings(_env_file=None, **overrides)


def build_app(settings: Settings, kv_store: KVStore | None = None) -> FastAPI:
    """Create the app the way the uvicorn entrypoint does."""
    app = create_app(settings, kv_store=kv_store)
    add_request_id_middleware(app, log_requests=False)
    return app


def generate_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def private_key_pem(key: rsa.RSAPrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def service_account_json(
    private_key: str,
    client_email: str = TEST_CLIENT_EMAIL,
    escape_newlines: bool = False,
    **extra,
) -> str:
    """Service-account key JSON as it would appear in VERTEX_AI_SERVICE_ACCOUNT_JSON.

    Args:
        private_key: PEM private key.
        client_email: Service account email.
        escape_newlines: If True, write the key with literal backslash-n
            sequences, as single-line env files do.
        **extra: Additional top-level fields (e.g. token_uri).
    """
    if escape_newlines:
        private_key = private_key.replace("\n", "\\n")
    data = {
        "type": "service_account",
        "project_id": "test-project",
        "private_key": private_key,
        "client_email": client_email,
        **extra,
    }
    return json.dumps(data)


def cloudflare_answer(text: str) -> dict:
    """Workers AI REST response body."""
    return {"result": {"response": text}, "success": True, "errors": [], "messages": []}


def openai_answer(text: str) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": text}}],
    }


def gemini_answer(*parts: str) -> dict:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": p} for p in parts]}}
        ]
    }


class FailingKVStore(KVStore):
    """Store whose every operation raises, for partial-failure tests."""

    def __init__(self):
        self.get_calls = 0
        self.put_calls = 0

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        raise ConnectionError("store unavailable")

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        self.put_calls += 1
        raise ConnectionError("store unavailable")
