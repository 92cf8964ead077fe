"""
Tests for the Redis cache repositories against a mocked client.
"""

from unittest.mock import MagicMock

import pytest
import redis

from lecture_assistant.entities import Fingerprint
from lecture_assistant.exceptions import CacheError
from lecture_assistant.repositories import RedisExactCacheRepository, RedisVectorCacheRepository
from lecture_assistant.utils import storage_key

from conftest import FakeEmbeddingProvider


@pytest.fixture
def mock_redis_client():
    """Mock Redis client; transaction() runs its callable on a watch pipeline."""
    client = MagicMock()
    client.ping.return_value = True
    client.watch_pipe = MagicMock()
    client.watch_pipe.exists.return_value = 1
    client.transaction.side_effect = lambda func, *watches: func(client.watch_pipe)
    return client


class TestRedisExactCacheRepository:
    def test_lookup_miss(self, mock_redis_client):
        mock_redis_client.hgetall.return_value = {}
        repo = RedisExactCacheRepository.create(mock_redis_client)

        assert repo.lookup(Fingerprint.exact("what is a cell"), "p1") is None
        mock_redis_client.hgetall.assert_called_once_with(
            storage_key("lecture_cache", "p1", "what is a cell")
        )

    def test_lookup_hit_decodes_bytes(self, mock_redis_client):
        mock_redis_client.hgetall.return_value = {
            b"question": b"What is a cell?",
            b"answer": "وحدة الحياة".encode("utf-8"),
            b"context_fingerprint": b"p1",
            b"hit_count": b"3",
            b"created_at": b"1700000000.0",
            b"last_accessed": b"1700000100.0",
        }
        repo = RedisExactCacheRepository.create(mock_redis_client)

        entry = repo.lookup(Fingerprint.exact("what is a cell"), "p1")
        assert entry.answer == "وحدة الحياة"
        assert entry.hit_count == 3
        assert entry.entry_id == storage_key("lecture_cache", "p1", "what is a cell")

    def test_write_sets_hit_count_and_ttl(self, mock_redis_client):
        pipe = mock_redis_client.pipeline.return_value
        repo = RedisExactCacheRepository.create(mock_redis_client, ttl=60)

        key = repo.write("What is a cell?", Fingerprint.exact("what is a cell"), "answer", "p1")

        mapping = pipe.hset.call_args.kwargs["mapping"]
        assert mapping["hit_count"] == 1
        assert mapping["context_fingerprint"] == "p1"
        assert mapping["question"] == "What is a cell?"
        pipe.expire.assert_called_once_with(key, 60)
        pipe.execute.assert_called_once()

    def test_same_question_same_partition_same_key(self, mock_redis_client):
        repo = RedisExactCacheRepository.create(mock_redis_client)
        fingerprint = Fingerprint.exact("what is a cell")
        assert repo.write("q", fingerprint, "a", "p1") == repo.write("q", fingerprint, "b", "p1")
        assert repo.write("q", fingerprint, "a", "p1") != repo.write("q", fingerprint, "a", "p2")

    def test_touch_increments_inside_watched_transaction(self, mock_redis_client):
        pipe = mock_redis_client.watch_pipe
        repo = RedisExactCacheRepository.create(mock_redis_client)

        repo.touch("lecture_cache:exact:p1:abc")

        mock_redis_client.transaction.assert_called_once()
        assert mock_redis_client.transaction.call_args.args[1] == "lecture_cache:exact:p1:abc"
        pipe.multi.assert_called_once()
        pipe.hincrby.assert_called_once_with("lecture_cache:exact:p1:abc", "hit_count", 1)

    def test_touch_skips_expired_entry(self, mock_redis_client):
        pipe = mock_redis_client.watch_pipe
        pipe.exists.return_value = 0
        repo = RedisExactCacheRepository.create(mock_redis_client)

        repo.touch("gone")
        pipe.multi.assert_not_called()
        pipe.hincrby.assert_not_called()

    def test_touch_redis_error_becomes_cache_error(self, mock_redis_client):
        mock_redis_client.transaction.side_effect = redis.ConnectionError("down")
        repo = RedisExactCacheRepository.create(mock_redis_client)

        with pytest.raises(CacheError):
            repo.touch("lecture_cache:exact:p1:abc")

    @pytest.mark.parametrize(
        "raw",
        [
            {b"answer": b"a", b"hit_count": b"not-a-number"},
            {b"answer": b"a", b"created_at": b"yesterday"},
            {b"answer": b"\xff\xfe"},
            {b"hit_count": b"4"},
        ],
    )
    def test_corrupt_entry_becomes_cache_error(self, mock_redis_client, raw):
        mock_redis_client.hgetall.return_value = raw
        repo = RedisExactCacheRepository.create(mock_redis_client)

        with pytest.raises(CacheError):
            repo.lookup(Fingerprint.exact("what is a cell"), "p1")

    def test_redis_errors_become_cache_errors(self, mock_redis_client):
        mock_redis_client.hgetall.side_effect = redis.ConnectionError("down")
        repo = RedisExactCacheRepository.create(mock_redis_client)

        with pytest.raises(CacheError):
            repo.lookup(Fingerprint.exact("what is a cell"), "p1")

    def test_rejects_semantic_fingerprint(self, mock_redis_client):
        repo = RedisExactCacheRepository.create(mock_redis_client)
        with pytest.raises(CacheError):
            repo.lookup(Fingerprint.semantic([1.0, 0.0]), "p1")

    def test_health_check(self, mock_redis_client):
        repo = RedisExactCacheRepository.create(mock_redis_client)
        assert repo.health_check() is True

        mock_redis_client.ping.side_effect = redis.ConnectionError("down")
        assert repo.health_check() is False

    def test_stats(self, mock_redis_client):
        mock_redis_client.scan_iter.return_value = iter([b"a", b"b"])
        repo = RedisExactCacheRepository.create(mock_redis_client)

        stats = repo.get_stats()
        assert stats["total_entries"] == 2
        assert stats["mode"] == "exact"
        assert stats["ttl_seconds"] == 2592000


class TestRedisVectorCacheRepository:
    @pytest.fixture
    def repo(self, mock_redis_client):
        repo = RedisVectorCacheRepository.create(
            mock_redis_client, FakeEmbeddingProvider(), similarity_threshold=0.85
        )
        repo._index = MagicMock()
        return repo

    def test_lookup_hit_within_threshold(self, repo):
        repo._index.query.return_value = [
            {
                "id": "lecture_cache:vec:1",
                "vector_distance": "0.05",
                "question": "What is a cell?",
                "answer": "The basic unit of life.",
                "context_fingerprint": "p1",
                "hit_count": "2",
                "created_at": "1700000000",
                "last_accessed": "1700000000",
            }
        ]

        entry = repo.lookup(Fingerprint.semantic([1.0, 0.0, 0.0]), "p1")
        assert entry.entry_id == "lecture_cache:vec:1"
        assert entry.hit_count == 2
        assert entry.similarity == pytest.approx(0.95)

    def test_lookup_filters_by_partition(self, repo, monkeypatch):
        vector_query = MagicMock()
        monkeypatch.setattr(
            "lecture_assistant.repositories.redis_vector_repository.VectorQuery", vector_query
        )
        repo._index.query.return_value = []
        repo.lookup(Fingerprint.semantic([1.0, 0.0, 0.0]), "p1")

        kwargs = vector_query.call_args.kwargs
        assert str(kwargs["filter_expression"]) == "@context_fingerprint:{p1}"
        assert kwargs["num_results"] == 1

    def test_lookup_beyond_threshold_is_miss(self, repo):
        repo._index.query.return_value = [{"id": "x", "vector_distance": "0.4"}]
        assert repo.lookup(Fingerprint.semantic([1.0, 0.0, 0.0]), "p1") is None

    def test_similarity_is_clamped(self, repo):
        repo._index.query.return_value = [
            {"id": "x", "vector_distance": "-0.0000001", "answer": "The basic unit of life."}
        ]
        entry = repo.lookup(Fingerprint.semantic([1.0, 0.0, 0.0]), "p1")
        assert entry.similarity == 1.0

    @pytest.mark.parametrize(
        "result",
        [
            {"id": "x", "vector_distance": "0.01", "answer": "a", "hit_count": "many"},
            {"id": "x", "vector_distance": "0.01"},
            {"vector_distance": "0.01", "answer": "a"},
            {"id": "x", "vector_distance": "close", "answer": "a"},
        ],
    )
    def test_corrupt_result_becomes_cache_error(self, repo, result):
        repo._index.query.return_value = [result]
        with pytest.raises(CacheError):
            repo.lookup(Fingerprint.semantic([1.0, 0.0, 0.0]), "p1")

    def test_touch_uses_watched_transaction(self, repo, mock_redis_client):
        repo.touch("lecture_cache:vec:1")
        mock_redis_client.watch_pipe.hincrby.assert_called_once_with(
            "lecture_cache:vec:1", "hit_count", 1
        )

    def test_stats_report_similarity_threshold(self, repo, mock_redis_client):
        mock_redis_client.scan_iter.return_value = iter([b"a"])
        stats = repo.get_stats()
        assert stats["mode"] == "semantic"
        assert stats["similarity_threshold"] == pytest.approx(0.85)

    def test_query_error_becomes_cache_error(self, repo):
        repo._index.query.side_effect = redis.ConnectionError("down")
        with pytest.raises(CacheError):
            repo.lookup(Fingerprint.semantic([1.0, 0.0, 0.0]), "p1")

    def test_write_packs_vector(self, repo, mock_redis_client):
        pipe = mock_redis_client.pipeline.return_value

        key = repo.write("What is a cell?", Fingerprint.semantic([1.0, 0.0, 0.0]), "answer", "p1")

        assert key.startswith("lecture_cache:vec:")
        mapping = pipe.hset.call_args.kwargs["mapping"]
        assert len(mapping["question_vector"]) == 12
        assert mapping["hit_count"] == 1
        assert mapping["context_fingerprint"] == "p1"

    def test_rejects_exact_fingerprint(self, repo):
        with pytest.raises(CacheError):
            repo.write("q", Fingerprint.exact("q"), "a", "p1")
