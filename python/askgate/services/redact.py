"""Redaction, hashing, and log guard utilities.

Never-log policy:
- Prompts and answers
- API keys, gateway tokens, OAuth bearer tokens
- Service-account JSON and private keys
- Raw request/response bodies

Allowed (with suffix):
- _chars, _length: length of text
- _sha256, _hash: hash of text
"""

import hashlib
import os

FORBIDDEN_KEYS = frozenset(
    {
        "prompt",
        "answer",
        "api_key",
        "bearer",
        "token",
        "access_token",
        "secret",
        "private_key",
        "service_account",
        "raw_body",
        "body",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")


def hash_text(value: str) -> str:
    """SHA-256 hex digest of a string.

    Args:
        value: Text to hash.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _has_redacted_suffix(key: str) -> bool:
    return any(key.endswith(suffix) for suffix in REDACTED_SUFFIXES)


def safe_kv(*, _env: str | None = None, **kwargs) -> dict:
    """Validate that no forbidden keys are present unless already redacted.

    Raises ValueError in local/test environments if a forbidden key is used
    without a redacted suffix. In staging/prod, logs a warning instead.

    Usage:
        logger.info("provider.request.started", **safe_kv(
            model="cloudflare",
            prompt_chars=1234,        # OK: _chars suffix
            prompt_sha256="abc123",   # OK: _sha256 suffix
            # prompt="hello world",   # BLOCKED: forbidden key
        ))

    Args:
        _env: Override for ASKGATE_ENV (test-only). If None, reads from env.
        **kwargs: Keyword arguments to validate and return.

    Returns:
        The same kwargs dict, after validation.

    Raises:
        ValueError: In local/test, if a forbidden key is used without redacted suffix.
    """
    violations = [
        key for key in kwargs if key in FORBIDDEN_KEYS and not _has_redacted_suffix(key)
    ]

    if violations:
        msg = f"Forbidden log keys without redacted suffix: {violations}"
        env = _env or os.environ.get("ASKGATE_ENV", "local")
        if env in ("local", "test"):
            raise ValueError(msg)

        import structlog

        structlog.get_logger("askgate.services.redact").warning(
            "safe_kv_violation", forbidden_keys=violations
        )
        for key in violations:
            kwargs.pop(key)

    return kwargs
