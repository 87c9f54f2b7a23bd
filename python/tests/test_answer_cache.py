"""Tests for cache key construction and the answer cache."""

import hashlib

import pytest

from askgate.services.answer_cache import (
    ANSWER_TTL_SECONDS,
    AnswerCache,
    build_cache_key,
    is_cacheable,
)
from askgate.services.kv import InMemoryKVStore
from tests.helpers import FailingKVStore


class TestBuildCacheKey:
    """Keys are deterministic and distinguish every input."""

    def test_deterministic(self):
        assert build_cache_key("cloudflare", "2+2?") == build_cache_key("cloudflare", "2+2?")

    def test_is_sha256_of_composite(self):
        expected = hashlib.sha256(b"cloudflare:2+2?").hexdigest()
        assert build_cache_key("cloudflare", "2+2?") == expected

    def test_variant_included(self):
        expected = hashlib.sha256(b"cloudflare#@cf/meta/llama-3-8b:2+2?").hexdigest()
        assert build_cache_key("cloudflare", "2+2?", "@cf/meta/llama-3-8b") == expected

    def test_model_changes_key(self):
        assert build_cache_key("cloudflare", "p") != build_cache_key("openai", "p")

    def test_prompt_changes_key(self):
        assert build_cache_key("cloudflare", "p") != build_cache_key("cloudflare", "q")

    def test_variant_changes_key(self):
        assert build_cache_key("openai", "p") != build_cache_key("openai", "p", "gpt-4o")
        assert build_cache_key("openai", "p", "a") != build_cache_key("openai", "p", "b")

    def test_prompt_with_colon_does_not_collide_with_variant(self):
        """A prompt containing the separator cannot mimic a variant."""
        assert build_cache_key("openai", "gpt-4o:p") != build_cache_key("openai", "p", "gpt-4o")

    def test_empty_variant_same_as_none(self):
        assert build_cache_key("openai", "p", "") == build_cache_key("openai", "p")


class TestIsCacheable:
    def test_blank_answers_not_cacheable(self):
        assert not is_cacheable("")
        assert not is_cacheable("   \n")
        assert not is_cacheable(None)

    def test_text_is_cacheable(self):
        assert is_cacheable("4")


class TestAnswerCache:
    """Read-through / write-after behavior."""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self):
        cache = AnswerCache(InMemoryKVStore())
        assert await cache.get("k") is None

        assert await cache.put("k", "4") is True
        assert await cache.get("k") == "4"

    @pytest.mark.asyncio
    async def test_blank_answer_not_stored(self):
        store = InMemoryKVStore()
        cache = AnswerCache(store)

        assert await cache.put("k", "  ") is False
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_default_ttl_is_seven_days(self):
        assert ANSWER_TTL_SECONDS == 604800

        calls = []

        class RecordingStore(InMemoryKVStore):
            async def put(self, key, value, *, ttl_seconds):
                calls.append(ttl_seconds)
                await super().put(key, value, ttl_seconds=ttl_seconds)

        await AnswerCache(RecordingStore()).put("k", "v")
        assert calls == [604800]

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self):
        store = FailingKVStore()
        assert await AnswerCache(store).get("k") is None
        assert store.get_calls == 1

    @pytest.mark.asyncio
    async def test_write_failure_reported_not_raised(self):
        store = FailingKVStore()
        assert await AnswerCache(store).put("k", "4") is False
        assert store.put_calls == 1

    @pytest.mark.asyncio
    async def test_stored_blank_value_treated_as_miss(self):
        store = InMemoryKVStore()
        await store.put("k", "", ttl_seconds=60)
        assert await AnswerCache(store).get("k") is None
