"""Error taxonomy for the gateway.

Every failure surfaced to a client is one of a small, closed set of kinds.
The kind determines the HTTP status; anything raised without a kind is
reported as ``internal_error``.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Normalized error kinds returned in the ``code`` field."""

    INVALID_REQUEST = "invalid_request"
    AUTH_ERROR = "auth_error"
    CONFIG_MISSING = "config_missing"
    PROVIDER_ERROR = "provider_error"
    INTERNAL_ERROR = "internal_error"
    POLICY_VIOLATION = "policy_violation"


KIND_TO_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.AUTH_ERROR: 401,
    ErrorKind.CONFIG_MISSING: 400,
    ErrorKind.PROVIDER_ERROR: 502,
    ErrorKind.INTERNAL_ERROR: 500,
    ErrorKind.POLICY_VIOLATION: 501,
}

# Upstream bodies are truncated before they are attached to an error
MAX_UPSTREAM_BODY_CHARS = 200


class GatewayError(Exception):
    """Base exception for tagged failures.

    Attributes:
        kind: The error kind
        message: Human-readable message (safe to return to clients)
        status_code: HTTP status derived from kind
        model: Logical model being served, when known
        details: Optional JSON-serializable diagnostic payload
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        model: str | None = None,
        details: Any = None,
    ):
        self.kind = kind
        self.message = message
        self.status_code = KIND_TO_STATUS.get(kind, 500)
        self.model = model
        self.details = details
        super().__init__(message)


class InvalidRequestError(GatewayError):
    """Request failed validation."""

    def __init__(self, message: str = "Invalid request", **kwargs: Any):
        super().__init__(ErrorKind.INVALID_REQUEST, message, **kwargs)


class AuthError(GatewayError):
    """Caller or upstream credential failure."""

    def __init__(self, message: str = "Unauthorized", **kwargs: Any):
        super().__init__(ErrorKind.AUTH_ERROR, message, **kwargs)


class ConfigMissingError(GatewayError):
    """A provider was invoked without the settings it needs."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(ErrorKind.CONFIG_MISSING, message, **kwargs)


class PolicyViolationError(GatewayError):
    """The gateway-first policy forbids the selected transport."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(ErrorKind.POLICY_VIOLATION, message, **kwargs)


class ProviderError(GatewayError):
    """Upstream provider failed or returned an unusable response.

    Attributes:
        upstream_status: HTTP status returned by the provider, if any
        upstream_body: Truncated response body, if any
    """

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        upstream_body: str | None = None,
        **kwargs: Any,
    ):
        self.upstream_status = upstream_status
        self.upstream_body = truncate_body(upstream_body) if upstream_body else None
        if upstream_status is not None and "details" not in kwargs:
            details: dict[str, Any] = {"upstream_status": upstream_status}
            if self.upstream_body:
                details["upstream_body"] = self.upstream_body
            kwargs["details"] = details
        super().__init__(ErrorKind.PROVIDER_ERROR, message, **kwargs)


def truncate_body(body: str, limit: int = MAX_UPSTREAM_BODY_CHARS) -> str:
    """Truncate an upstream body for inclusion in an error."""
    if len(body) <= limit:
        return body
    return body[:limit] + "..."
