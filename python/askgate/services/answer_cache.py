"""Answer cache: deterministic keys plus read-through / write-after helpers.

Cache key:
    sha256_hex("{model}:{prompt}")            when no variant is given
    sha256_hex("{model}#{variant}:{prompt}")  when a variant is given

Model names and variants never contain ':' and model names never contain
'#', so the composite string maps back to exactly one (model, variant,
prompt) triple.

Entries are written once per successful, non-blank answer with a fixed
7-day TTL. There is no invalidation path.

Store failures never fail a query: a failed read is a miss, a failed write
is logged and dropped.
"""

import hashlib

from askgate.logging import get_logger
from askgate.services.kv import KVStore
from askgate.services.redact import safe_kv

logger = get_logger(__name__)

ANSWER_TTL_SECONDS = 60 * 60 * 24 * 7


def build_cache_key(model: str, prompt: str, variant: str | None = None) -> str:
    """Return the hex SHA-256 cache key for a (model, variant, prompt) triple."""
    if variant:
        composite = f"{model}#{variant}:{prompt}"
    else:
        composite = f"{model}:{prompt}"
    return hashlib.sha256(composite.encode("utf-8")).hexdigest()


def is_cacheable(answer: str | None) -> bool:
    """Blank answers are never cached."""
    return bool(answer and answer.strip())


class AnswerCache:
    """Read-through / write-after cache over a KVStore."""

    def __init__(self, store: KVStore, ttl_seconds: int = ANSWER_TTL_SECONDS):
        self._store = store
        self._ttl_seconds = ttl_seconds

    async def get(self, key: str) -> str | None:
        try:
            value = await self._store.get(key)
        except Exception as e:
            logger.warning(
                "answer_cache.read_failed",
                **safe_kv(cache_key_hash=key, error_type=type(e).__name__),
            )
            return None
        if not is_cacheable(value):
            return None
        return value

    async def put(self, key: str, answer: str) -> bool:
        """Store answer under key.

        Returns:
            True if the answer was written, False if skipped or the write failed.
        """
        if not is_cacheable(answer):
            logger.info("answer_cache.skip_blank", **safe_kv(cache_key_hash=key))
            return False
        try:
            await self._store.put(key, answer, ttl_seconds=self._ttl_seconds)
        except Exception as e:
            logger.warning(
                "answer_cache.write_failed",
                **safe_kv(cache_key_hash=key, error_type=type(e).__name__),
            )
            return False
        return True
