"""Fingerprint derivation for cache keys.

Turns a question into an exact key or an embedding vector, and a lecture
context into a partition key. The same instance serves both lookup and
write-back, so the two paths can never normalize differently.
"""

from lecture_assistant.entities import Fingerprint, FingerprintMode
from lecture_assistant.exceptions import EmbeddingError
from lecture_assistant.protocols import EmbeddingProvider
from lecture_assistant.utils.hasher import context_fingerprint, normalize_question
from lecture_assistant.utils.logger import get_logger

logger = get_logger(__name__)


class FingerprintService:
    """Derives question fingerprints and context partition keys."""

    def __init__(
        self,
        mode: FingerprintMode = FingerprintMode.EXACT,
        embedding_provider: EmbeddingProvider | None = None,
        key_max_chars: int = 200,
        context_prefix_chars: int = 2000,
    ) -> None:
        """Initialize the fingerprint service.

        Args:
            mode: EXACT for normalized-text keys, SEMANTIC for embeddings
            embedding_provider: Required in SEMANTIC mode
            key_max_chars: Truncation length of exact keys
            context_prefix_chars: Context prefix length used for partitioning
        """
        if mode is FingerprintMode.SEMANTIC and embedding_provider is None:
            raise ValueError("Semantic fingerprints need an embedding provider")
        self._mode = mode
        self._embeddings = embedding_provider
        self._key_max_chars = key_max_chars
        self._context_prefix_chars = context_prefix_chars

    @property
    def mode(self) -> FingerprintMode:
        return self._mode

    def partition_key(self, context: str | None) -> str:
        """Partition key for a lecture context."""
        return context_fingerprint(context, self._context_prefix_chars)

    async def derive(self, question: str) -> Fingerprint | None:
        """Derive the fingerprint of a question.

        Returns:
            The fingerprint, or None when no usable fingerprint exists
            (blank normalized key, or the embedding service failed)
        """
        if self._mode is FingerprintMode.EXACT:
            key = normalize_question(question, self._key_max_chars)
            return Fingerprint.exact(key) if key else None

        try:
            vector = await self._embeddings.encode(question)
        except EmbeddingError as e:
            logger.warning("embedding_failed", error=str(e), question=question[:100])
            return None

        if not vector:
            logger.warning("embedding_failed", error="empty vector", question=question[:100])
            return None
        return Fingerprint.semantic(vector)
