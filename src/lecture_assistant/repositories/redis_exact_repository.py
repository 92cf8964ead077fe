"""Redis implementation of CacheStore for exact-match fingerprints.

Each entry is a Redis hash whose key embeds the partition key and a hash of
the normalized question, so lookup is a single HGETALL.
"""

import time

import redis

from lecture_assistant.entities import CacheEntryEntity, Fingerprint, FingerprintMode
from lecture_assistant.exceptions import CacheError
from lecture_assistant.repositories.redis_helpers import decode, touch_entry
from lecture_assistant.utils.hasher import storage_key


class RedisExactCacheRepository:
    """Redis hash store keyed by normalized question and partition.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        index_name: str = "lecture_cache",
        ttl: int = 2592000,
    ) -> None:
        """Initialize the exact-match repository.

        Args:
            redis_client: Redis client instance
            index_name: Key prefix for all entries
            ttl: Time-to-live for entries in seconds
        """
        self._client = redis_client
        self._index_name = index_name
        self._ttl = ttl

    @classmethod
    def create(
        cls,
        redis_client: redis.Redis,
        index_name: str = "lecture_cache",
        ttl: int = 2592000,
    ) -> "RedisExactCacheRepository":
        """Factory method to create RedisExactCacheRepository."""
        return cls(redis_client=redis_client, index_name=index_name, ttl=ttl)

    def _key_for(self, fingerprint: Fingerprint, partition_key: str) -> str:
        if fingerprint.mode is not FingerprintMode.EXACT or fingerprint.key is None:
            raise CacheError("Exact repository requires an exact fingerprint")
        return storage_key(self._index_name, partition_key, fingerprint.key)

    def lookup(self, fingerprint: Fingerprint, partition_key: str) -> CacheEntryEntity | None:
        """Fetch the entry stored under fingerprint + partition, if any."""
        key = self._key_for(fingerprint, partition_key)
        try:
            raw = self._client.hgetall(key)
        except redis.RedisError as e:
            raise CacheError(f"Redis lookup failed: {e}") from e

        if not raw:
            return None

        try:
            data = {decode(k): decode(v) for k, v in raw.items()}
            if not data.get("answer"):
                raise ValueError("entry has no answer")
            return CacheEntryEntity(
                entry_id=key,
                question=data.get("question", ""),
                answer=data["answer"],
                context_fingerprint=data.get("context_fingerprint", partition_key),
                hit_count=int(data.get("hit_count") or 0),
                created_at=float(data.get("created_at") or 0),
                last_accessed=float(data.get("last_accessed") or 0),
                fingerprint_key=data.get("fingerprint_key") or fingerprint.key,
            )
        except (ValueError, UnicodeDecodeError) as e:
            raise CacheError(f"Corrupt cache entry {key}: {e}") from e

    def touch(self, entry_id: str) -> None:
        """Increment hit_count and refresh last_accessed.

        Entries that expired since lookup are left alone rather than
        recreated as partial hashes.
        """
        touch_entry(self._client, entry_id)

    def write(
        self,
        question: str,
        fingerprint: Fingerprint,
        answer: str,
        partition_key: str,
    ) -> str:
        """Insert an entry with hit_count=1. Concurrent writes are last-write-wins."""
        key = self._key_for(fingerprint, partition_key)
        now = str(time.time())
        try:
            pipe = self._client.pipeline()
            pipe.hset(
                key,
                mapping={
                    "question": question,
                    "answer": answer,
                    "fingerprint_key": fingerprint.key or "",
                    "context_fingerprint": partition_key,
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
        """Count exact-match entries."""
        count = 0
        for _ in self._client.scan_iter(match=f"{self._index_name}:exact:*"):
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
            "mode": "exact",
            "index_name": self._index_name,
            "total_entries": total,
            "ttl_seconds": self._ttl,
        }
