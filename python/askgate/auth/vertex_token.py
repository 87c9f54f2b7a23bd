"""OAuth2 access tokens for Vertex AI via the JWT-bearer grant.

Flow on a cache miss:
1. Parse the service-account JSON (client_email, private_key required)
2. Sign an RS256 assertion: iss=sub=client_email, aud=token endpoint,
   iat=now, exp=now+3600, scope=cloud-platform
3. POST grant_type=urn:ietf:params:oauth:grant-type:jwt-bearer to the
   token endpoint
4. Store access_token under a single well-known key with
   TTL = max(expires_in - 600, 3000)

Later calls within the TTL reuse the stored token without network access.
Refresh is lazy (on miss only). The read-then-write is not atomic:
concurrent misses may each mint a token, and the last write wins.
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm

from askgate.errors import AuthError
from askgate.logging import get_logger
from askgate.services.kv import KVStore
from askgate.services.redact import safe_kv

logger = get_logger(__name__)

TOKEN_CACHE_KEY = "vertex-ai:access-token"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ASSERTION_LIFETIME_SECONDS = 3600
DEFAULT_EXPIRES_IN_SECONDS = 3600
TOKEN_SAFETY_MARGIN_SECONDS = 600
MIN_TOKEN_TTL_SECONDS = 3000


@dataclass(frozen=True)
class ServiceAccount:
    """The fields of a Google service-account key this service needs."""

    client_email: str
    private_key: str
    token_uri: str = DEFAULT_TOKEN_URI


def parse_service_account(raw: str) -> ServiceAccount:
    """Parse service-account JSON.

    Escaped newlines ("\\n") in the private key are converted to real
    newlines, since env files frequently carry the key on one line.

    Raises:
        AuthError: If the JSON is malformed or required fields are missing.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise AuthError("Invalid Vertex AI service account JSON") from e

    if not isinstance(data, dict):
        raise AuthError("Invalid Vertex AI service account JSON")

    missing = [
        name
        for name in ("private_key", "client_email")
        if not isinstance(data.get(name), str) or not data.get(name)
    ]
    if missing:
        raise AuthError(
            f"Vertex AI service account JSON missing required fields: {', '.join(missing)}",
            details={"missing_fields": missing},
        )

    return ServiceAccount(
        client_email=data["client_email"],
        private_key=data["private_key"].replace("\\n", "\n"),
        token_uri=data.get("token_uri") or DEFAULT_TOKEN_URI,
    )


def token_ttl_seconds(expires_in: int | None) -> int:
    """Cache lifetime for a token that the provider says lives expires_in seconds."""
    lifetime = expires_in if expires_in and expires_in > 0 else DEFAULT_EXPIRES_IN_SECONDS
    return max(lifetime - TOKEN_SAFETY_MARGIN_SECONDS, MIN_TOKEN_TTL_SECONDS)


def build_assertion(account: ServiceAccount, now: int) -> str:
    """Sign the JWT assertion for the token exchange.

    Raises:
        AuthError: If the private key cannot be used for RS256 signing.
    """
    payload = {
        "iss": account.client_email,
        "sub": account.client_email,
        "aud": account.token_uri,
        "iat": now,
        "exp": now + ASSERTION_LIFETIME_SECONDS,
        "scope": CLOUD_PLATFORM_SCOPE,
    }
    try:
        return jwt.encode(payload, account.private_key, algorithm="RS256")
    except (ValueError, TypeError, jwt.PyJWTError, UnsupportedAlgorithm) as e:
        raise AuthError("Failed to sign Vertex AI token assertion") from e


class VertexTokenManager:
    """Lazily mints and caches the Vertex AI bearer token."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: KVStore,
        service_account_json: str | None,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._store = store
        self._service_account_json = service_account_json
        self._clock = clock

    async def get_token(self) -> str:
        """Return a cached token, or mint and cache a new one.

        Raises:
            AuthError: On malformed credentials or a failed exchange.
        """
        cached = await self._read_cached()
        if cached:
            return cached

        if not self._service_account_json:
            raise AuthError("Vertex AI service account JSON is not configured")

        account = parse_service_account(self._service_account_json)
        token, expires_in = await self._exchange(account)
        ttl = token_ttl_seconds(expires_in)
        await self._write_cached(token, ttl)

        logger.info("vertex_token.minted", **safe_kv(ttl_seconds=ttl))
        return token

    async def _exchange(self, account: ServiceAccount) -> tuple[str, int | None]:
        assertion = build_assertion(account, int(self._clock()))

        try:
            response = await self._client.post(
                account.token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise AuthError("Failed to get Vertex AI access token: network error") from e

        if not response.is_success:
            logger.warning(
                "vertex_token.exchange_failed",
                **safe_kv(status_code=response.status_code, body_chars=len(response.text)),
            )
            raise AuthError(
                f"Failed to get Vertex AI access token ({response.status_code})",
                details={"upstream_status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError("Failed to get Vertex AI access token: invalid response") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError("Failed to get Vertex AI access token: empty token")

        expires_in = data.get("expires_in")
        try:
            expires_in = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires_in = None
        return token, expires_in

    async def _read_cached(self) -> str | None:
        try:
            return await self._store.get(TOKEN_CACHE_KEY)
        except Exception as e:
            logger.warning("vertex_token.cache_read_failed", error_type=type(e).__name__)
            return None

    async def _write_cached(self, token: str, ttl: int) -> None:
        try:
            await self._store.put(TOKEN_CACHE_KEY, token, ttl_seconds=ttl)
        except Exception as e:
            logger.warning("vertex_token.cache_write_failed", error_type=type(e).__name__)
