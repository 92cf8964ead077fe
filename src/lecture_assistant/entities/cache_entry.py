"""Cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached question-answer pair.

    Attributes:
        entry_id: Store-specific identifier used by touch()
        question: The original question text
        answer: The cached answer
        context_fingerprint: Partition key of the lecture context
        hit_count: Times this entry has been served (1 on insert)
        created_at: Creation time (Unix timestamp)
        last_accessed: Last time the entry was written or served (Unix timestamp)
        fingerprint_key: Normalized question, for exact-match entries
        similarity: Cosine similarity of the match, for semantic entries
    """

    entry_id: str
    question: str
    answer: str
    context_fingerprint: str
    hit_count: int
    created_at: float
    last_accessed: float
    fingerprint_key: str | None = None
    similarity: float | None = None
