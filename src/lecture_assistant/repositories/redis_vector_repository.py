"""Redis implementation of CacheStore for semantic fingerprints.

This repository uses Redis Stack with vector search capabilities (HNSW index)
and a tag field holding the partition key, so a similarity search never
crosses lecture contexts.
"""

import struct
import time
import uuid

import redis
from redisvl.exceptions import RedisSearchError
from redisvl.index import SearchIndex
from redisvl.query import VectorQuery
from redisvl.query.filter import Tag

from lecture_assistant.entities import CacheEntryEntity, Fingerprint, FingerprintMode
from lecture_assistant.exceptions import CacheError
from lecture_assistant.protocols import EmbeddingProvider
from lecture_assistant.repositories.redis_helpers import decode, touch_entry
from lecture_assistant.utils.logger import get_logger

logger = get_logger(__name__)


class RedisVectorCacheRepository:
    """Redis implementation using an HNSW cosine vector index.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    The index is created lazily on first use so an unreachable Redis at
    startup only disables caching for the requests that hit it.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        embedding_provider: EmbeddingProvider,
        index_name: str = "lecture_cache",
        ttl: int = 2592000,
        distance_threshold: float = 0.15,
    ) -> None:
        """Initialize the vector repository.

        Args:
            redis_client: Redis client instance
            embedding_provider: Provider whose dimension sizes the vector field
            index_name: Name of the Redis search index (also key prefix)
            ttl: Time-to-live for entries in seconds
            distance_threshold: Maximum cosine distance counted as a hit
        """
        self._client = redis_client
        self._embeddings = embedding_provider
        self._index_name = index_name
        self._ttl = ttl
        self._threshold = distance_threshold
        self._index: SearchIndex | None = None

    @classmethod
    def create(
        cls,
        redis_client: redis.Redis,
        embedding_provider: EmbeddingProvider,
        index_name: str = "lecture_cache",
        ttl: int = 2592000,
        similarity_threshold: float = 0.85,
    ) -> "RedisVectorCacheRepository":
        """Factory method taking a similarity (not distance) threshold."""
        return cls(
            redis_client=redis_client,
            embedding_provider=embedding_provider,
            index_name=index_name,
            ttl=ttl,
            distance_threshold=1.0 - similarity_threshold,
        )

    @property
    def index(self) -> SearchIndex:
        """The search index, created on first access."""
        if self._index is None:
            self._index = self._ensure_index()
        return self._index

    def _ensure_index(self) -> SearchIndex:
        index_schema = {
            "index": {
                "name": self._index_name,
                "prefix": f"{self._index_name}:vec:",
                "storage_type": "hash",
            },
            "fields": [
                {"name": "question", "type": "text"},
                {"name": "answer", "type": "text"},
                {"name": "context_fingerprint", "type": "tag"},
                {
                    "name": "question_vector",
                    "type": "vector",
                    "attrs": {
                        "dims": self._embeddings.dimension,
                        "algorithm": "hnsw",
                        "distance_metric": "cosine",
                        "datatype": "float32",
                    },
                },
                {"name": "hit_count", "type": "numeric"},
                {"name": "created_at", "type": "numeric"},
                {"name": "last_accessed", "type": "numeric"},
            ],
        }

        index = SearchIndex.from_dict(index_schema)
        index.set_client(self._client)

        try:
            if index.exists():
                logger.info("Using existing index", index=self._index_name)
            else:
                index.create(overwrite=False)
                logger.info("Created new index", index=self._index_name)
        except (redis.RedisError, RedisSearchError) as e:
            raise CacheError(f"Redis index setup failed: {e}") from e

        return index

    def lookup(self, fingerprint: Fingerprint, partition_key: str) -> CacheEntryEntity | None:
        """Return the closest entry in the partition within the threshold.

        Ties in distance come back in whatever order Redis returns them.
        """
        if fingerprint.mode is not FingerprintMode.SEMANTIC or fingerprint.vector is None:
            raise CacheError("Vector repository requires a semantic fingerprint")

        query = VectorQuery(
            vector=list(fingerprint.vector),
            vector_field_name="question_vector",
            return_fields=[
                "question",
                "answer",
                "context_fingerprint",
                "hit_count",
                "created_at",
                "last_accessed",
            ],
            filter_expression=Tag("context_fingerprint") == partition_key,
            num_results=1,
        )

        try:
            results = self.index.query(query)
        except (redis.RedisError, RedisSearchError) as e:
            raise CacheError(f"Redis vector search failed: {e}") from e

        for result in results:
            try:
                entry = self._to_entity(result, partition_key)
            except (KeyError, ValueError, UnicodeDecodeError) as e:
                raise CacheError(f"Corrupt vector search result: {e}") from e
            if entry is not None:
                return entry

        return None

    def _to_entity(self, result: dict, partition_key: str) -> CacheEntryEntity | None:
        distance = float(result.get("vector_distance", 2.0))
        if distance > self._threshold:
            return None
        answer = decode(result.get("answer"))
        if not answer:
            raise ValueError("entry has no answer")
        return CacheEntryEntity(
            entry_id=decode(result["id"]),
            question=decode(result.get("question")),
            answer=answer,
            context_fingerprint=decode(result.get("context_fingerprint")) or partition_key,
            hit_count=int(float(result.get("hit_count") or 0)),
            created_at=float(result.get("created_at") or 0),
            last_accessed=float(result.get("last_accessed") or 0),
            similarity=max(0.0, min(1.0, 1.0 - distance)),
        )

    def touch(self, entry_id: str) -> None:
        """Increment hit_count and refresh last_accessed."""
        touch_entry(self._client, entry_id)

    def write(
        self,
        question: str,
        fingerprint: Fingerprint,
        answer: str,
        partition_key: str,
    ) -> str:
        """Insert a new vector entry with hit_count=1."""
        if fingerprint.mode is not FingerprintMode.SEMANTIC or fingerprint.vector is None:
            raise CacheError("Vector repository requires a semantic fingerprint")

        # Convert vector to float32 bytes for Redis
        vector = fingerprint.vector
        vector_bytes = struct.pack(f"{len(vector)}f", *vector)

        key = f"{self._index_name}:vec:{uuid.uuid4().hex}"
        now = str(time.time())

        try:
            # Create the index before the first hash lands under its prefix
            _ = self.index
            pipe = self._client.pipeline()
            pipe.hset(
                key,
                mapping={
                    "question": question,
                    "answer": answer,
                    "context_fingerprint": partition_key,
                    "question_vector": vector_bytes,
                    "hit_count": 1,
                    "created_at": now,
                    "last_accessed": now,
                },
            )
            pipe.expire(key, self._ttl)
            pipe.execute()
        except redis.RedisError as e:
            raise CacheError(f"Redis write failed: {e}") from e

        return key

    def count_all(self) -> int:
        """Count vector entries."""
        count = 0
        for _ in self._client.scan_iter(match=f"{self._index_name}:vec:*"):
            count += 1
        return count

    def health_check(self) -> bool:
        """Check if Redis is accessible."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def get_stats(self) -> dict:
        """Get repository statistics."""
        try:
            total = self.count_all()
        except redis.RedisError as e:
            raise CacheError(f"Redis stats failed: {e}") from e
        return {
            "mode": "semantic",
            "index_name": self._index_name,
            "total_entries": total,
            "ttl_seconds": self._ttl,
            "similarity_threshold": round(max(0.0, 1.0 - self._threshold), 6),
        }
