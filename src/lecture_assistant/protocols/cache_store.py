"""Cache storage protocol.

Defines the interface for a store of question-answer pairs scoped by a
partition key (the lecture context fingerprint).

Implementations:
- Redis hashes keyed by normalized question (exact mode)
- Redis Stack vector index (semantic mode)
"""

from typing import Protocol, runtime_checkable

from lecture_assistant.entities import CacheEntryEntity, Fingerprint


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed. Implementations raise CacheError on
    backend failures; callers decide whether to swallow them.
    """

    def lookup(self, fingerprint: Fingerprint, partition_key: str) -> CacheEntryEntity | None:
        """Find a cached entry for a fingerprint inside one partition.

        Args:
            fingerprint: Exact key or embedding vector of the question
            partition_key: Context fingerprint scoping the search

        Returns:
            The best matching entry, or None
        """
        ...

    def touch(self, entry_id: str) -> None:
        """Increment the hit counter and refresh last-accessed time.

        Args:
            entry_id: Identifier from CacheEntryEntity.entry_id
        """
        ...

    def write(
        self,
        question: str,
        fingerprint: Fingerprint,
        answer: str,
        partition_key: str,
    ) -> str:
        """Insert a new entry with hit_count=1.

        Args:
            question: The original question text
            fingerprint: Exact key or embedding vector of the question
            answer: The generated answer
            partition_key: Context fingerprint

        Returns:
            The identifier of the new entry
        """
        ...

    def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...

    def get_stats(self) -> dict:
        """Get store statistics.

        Returns:
            Dictionary with mode, index_name, total_entries and ttl_seconds;
            semantic stores add similarity_threshold

        Raises:
            CacheError: If the store cannot be read
        """
        ...
