"""
Tests for FingerprintService and CacheService.
"""

import pytest

from lecture_assistant.entities import FingerprintMode
from lecture_assistant.services import CacheService, FingerprintService

from conftest import FakeEmbeddingProvider, InMemoryCacheStore


@pytest.fixture
def exact_cache(store) -> CacheService:
    return CacheService.create(repository=store, fingerprints=FingerprintService())


class TestFingerprintService:
    @pytest.mark.asyncio
    async def test_exact_fingerprint(self):
        service = FingerprintService()
        fingerprint = await service.derive("What is a Cell?")
        assert fingerprint.mode is FingerprintMode.EXACT
        assert fingerprint.key == "what is a cell"

    @pytest.mark.asyncio
    async def test_blank_key_has_no_fingerprint(self):
        assert await FingerprintService().derive("???") is None

    @pytest.mark.asyncio
    async def test_semantic_fingerprint(self):
        embeddings = FakeEmbeddingProvider({"What is a cell?": [1.0, 0.0, 0.0]})
        service = FingerprintService(FingerprintMode.SEMANTIC, embedding_provider=embeddings)
        fingerprint = await service.derive("What is a cell?")
        assert fingerprint.vector == (1.0, 0.0, 0.0)

    @pytest.mark.asyncio
    async def test_embedding_failure_has_no_fingerprint(self):
        embeddings = FakeEmbeddingProvider()
        embeddings.fail = True
        service = FingerprintService(FingerprintMode.SEMANTIC, embedding_provider=embeddings)
        assert await service.derive("What is a cell?") is None

    def test_semantic_requires_provider(self):
        with pytest.raises(ValueError):
            FingerprintService(FingerprintMode.SEMANTIC)

    def test_partition_key_uses_prefix(self):
        service = FingerprintService(context_prefix_chars=5)
        assert service.partition_key("abcdeXXX") == service.partition_key("abcdeYYY")


class TestCacheService:
    @pytest.mark.asyncio
    async def test_miss_then_remember_then_hit(self, exact_cache, store):
        lookup = await exact_cache.lookup("What is a cell?", "Biology")
        assert not lookup.is_hit
        assert lookup.can_write

        entry_id = exact_cache.remember("What is a cell?", lookup, "The basic unit of life.")
        assert entry_id is not None

        hit = await exact_cache.lookup("what is a cell", "Biology")
        assert hit.is_hit
        assert hit.entry.answer == "The basic unit of life."
        assert hit.entry.hit_count == 1

    @pytest.mark.asyncio
    async def test_record_hit_increments(self, exact_cache, store):
        lookup = await exact_cache.lookup("What is a cell?", "Biology")
        entry_id = exact_cache.remember("What is a cell?", lookup, "answer")

        exact_cache.record_hit(entry_id)
        assert store.entries[entry_id]["hit_count"] == 2

    @pytest.mark.asyncio
    async def test_lookup_failure_is_a_miss(self, exact_cache, store):
        store.fail_lookup = True
        lookup = await exact_cache.lookup("What is a cell?", "Biology")
        assert not lookup.is_hit
        assert lookup.can_write

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, exact_cache, store):
        store.fail_write = True
        lookup = await exact_cache.lookup("What is a cell?", "Biology")
        assert exact_cache.remember("What is a cell?", lookup, "answer") is None

    def test_touch_failure_is_swallowed(self, exact_cache, store):
        store.fail_touch = True
        exact_cache.record_hit("missing")
        assert store.touches == ["missing"]

    @pytest.mark.asyncio
    async def test_no_fingerprint_skips_store(self, store):
        embeddings = FakeEmbeddingProvider()
        embeddings.fail = True
        cache = CacheService.create(
            repository=store,
            fingerprints=FingerprintService(FingerprintMode.SEMANTIC, embedding_provider=embeddings),
        )

        lookup = await cache.lookup("What is a cell?", "Biology")
        assert store.lookups == 0
        assert not lookup.can_write
        assert cache.remember("What is a cell?", lookup, "answer") is None
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_hit_is_never_rewritten(self, exact_cache, store):
        lookup = await exact_cache.lookup("What is a cell?", "Biology")
        exact_cache.remember("What is a cell?", lookup, "answer")

        hit = await exact_cache.lookup("What is a cell?", "Biology")
        assert exact_cache.remember("What is a cell?", hit, "other answer") is None
        assert len(store.writes) == 1

    @pytest.mark.asyncio
    async def test_semantic_threshold(self):
        store = InMemoryCacheStore(similarity_threshold=0.85)
        embeddings = FakeEmbeddingProvider(
            {
                "What is a cell?": [1.0, 0.0, 0.0],
                "Define a cell": [0.9, 0.3, 0.0],
                "What is DNA?": [0.5, 0.8, 0.0],
            }
        )
        cache = CacheService.create(
            repository=store,
            fingerprints=FingerprintService(FingerprintMode.SEMANTIC, embedding_provider=embeddings),
        )
        lookup = await cache.lookup("What is a cell?", "Biology")
        cache.remember("What is a cell?", lookup, "answer")

        near = await cache.lookup("Define a cell", "Biology")
        assert near.is_hit
        assert near.entry.similarity >= 0.85

        far = await cache.lookup("What is DNA?", "Biology")
        assert not far.is_hit

    def test_stats_come_from_store(self, exact_cache):
        assert exact_cache.get_stats()["mode"] == "exact"
        assert exact_cache.is_healthy() is True
