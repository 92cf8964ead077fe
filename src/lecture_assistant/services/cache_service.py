"""Cache service for the cache-aside flow.

This service coordinates the fingerprint deriver and the cache store.
Every store failure is logged and downgraded: a failed lookup is a miss,
a failed touch or write is a no-op. Nothing here ever fails a request.
"""

from dataclasses import dataclass

from lecture_assistant.entities import CacheEntryEntity, Fingerprint
from lecture_assistant.exceptions import CacheError
from lecture_assistant.protocols import CacheStore
from lecture_assistant.services.fingerprint_service import FingerprintService
from lecture_assistant.utils.logger import get_logger, log_cache_hit, log_cache_miss, log_error

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheLookup:
    """Outcome of a cache lookup.

    Attributes:
        partition_key: Context fingerprint the lookup was scoped to
        fingerprint: Question fingerprint, None if it could not be derived
        entry: Matching entry on a hit, None on a miss
    """

    partition_key: str
    fingerprint: Fingerprint | None
    entry: CacheEntryEntity | None = None

    @property
    def is_hit(self) -> bool:
        return self.entry is not None

    @property
    def can_write(self) -> bool:
        """Whether a generated answer can be written back under this lookup."""
        return self.fingerprint is not None and self.entry is None


class CacheService:
    """Cache-aside orchestration over a CacheStore.

    Example:
        ```python
        cache = CacheService.create(
            repository=RedisExactCacheRepository.create(redis_client),
            fingerprints=FingerprintService(),
        )
        lookup = await cache.lookup("What is a cell?", context)
        if not lookup.is_hit:
            cache.remember("What is a cell?", lookup, answer)
        ```
    """

    def __init__(self, repository: CacheStore, fingerprints: FingerprintService) -> None:
        """Initialize the cache service.

        Args:
            repository: Cache storage backend (required).
            fingerprints: Fingerprint deriver shared by read and write paths.
        """
        self._repository = repository
        self._fingerprints = fingerprints

    @classmethod
    def create(cls, repository: CacheStore, fingerprints: FingerprintService) -> "CacheService":
        """Factory method to create CacheService."""
        return cls(repository=repository, fingerprints=fingerprints)

    async def lookup(self, question: str, context: str | None) -> CacheLookup:
        """Look the question up inside its context partition.

        Args:
            question: The last user question
            context: Lecture context of the session

        Returns:
            CacheLookup; ``entry`` is set only on a hit
        """
        partition_key = self._fingerprints.partition_key(context)
        fingerprint = await self._fingerprints.derive(question)
        mode = self._fingerprints.mode.value

        if fingerprint is None:
            log_cache_miss(question, mode, reason="no_fingerprint")
            return CacheLookup(partition_key=partition_key, fingerprint=None)

        try:
            entry = self._repository.lookup(fingerprint, partition_key)
        except CacheError as e:
            log_error(e, context="cache_lookup", question=question[:100])
            return CacheLookup(partition_key=partition_key, fingerprint=fingerprint)

        if entry is None:
            log_cache_miss(question, mode)
            return CacheLookup(partition_key=partition_key, fingerprint=fingerprint)

        log_cache_hit(question, mode, hit_count=entry.hit_count + 1, similarity=entry.similarity)
        return CacheLookup(partition_key=partition_key, fingerprint=fingerprint, entry=entry)

    def record_hit(self, entry_id: str) -> None:
        """Bump the hit counter of a served entry. Runs after the response."""
        try:
            self._repository.touch(entry_id)
        except CacheError as e:
            log_error(e, context="cache_touch", entry_id=entry_id)

    def remember(self, question: str, lookup: CacheLookup, answer: str) -> str | None:
        """Write a generated answer back. Runs after the response.

        Returns:
            The new entry id, or None if nothing was written
        """
        if not lookup.can_write:
            return None
        try:
            entry_id = self._repository.write(
                question=question,
                fingerprint=lookup.fingerprint,
                answer=answer,
                partition_key=lookup.partition_key,
            )
        except CacheError as e:
            log_error(e, context="cache_write", question=question[:100])
            return None
        logger.info("cache_write", entry_id=entry_id, question=question[:100])
        return entry_id

    def get_stats(self) -> dict:
        """Store statistics.

        Raises:
            CacheError: If the store cannot be read
        """
        return self._repository.get_stats()

    def is_healthy(self) -> bool:
        """Check if the store is reachable."""
        return self._repository.health_check()
