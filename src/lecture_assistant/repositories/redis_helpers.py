"""Helpers shared by the Redis cache repositories."""

import time

import redis

from lecture_assistant.exceptions import CacheError


def decode(value: bytes | str | None) -> str:
    """Decode a Redis field value to text (None becomes "")."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def touch_entry(client: redis.Redis, entry_id: str) -> None:
    """Increment hit_count and refresh last_accessed of an existing hash.

    The existence check and the update run in one WATCH/MULTI transaction,
    so an entry that expires in between is never recreated as a partial
    hash without a TTL. redis-py retries the transaction on WatchError.

    Raises:
        CacheError: If Redis fails
    """

    def _touch(pipe: redis.client.Pipeline) -> None:
        if not pipe.exists(entry_id):
            return
        pipe.multi()
        pipe.hincrby(entry_id, "hit_count", 1)
        pipe.hset(entry_id, "last_accessed", str(time.time()))

    try:
        client.transaction(_touch, entry_id)
    except redis.RedisError as e:
        raise CacheError(f"Redis touch failed: {e}") from e
