"""Local sentence-transformers embedding provider.

Runs the embedding model in-process, no API calls required. Encoding is
pushed to a worker thread so it does not block the event loop.
"""

import asyncio
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from lecture_assistant.exceptions import EmbeddingError
from lecture_assistant.utils.logger import get_logger

logger = get_logger(__name__)


class LocalEmbeddingProvider:
    """Local sentence-transformers implementation of EmbeddingProvider.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Default model: paraphrase-multilingual-MiniLM-L12-v2 (384 dimensions),
    which handles Arabic and English questions.
    """

    def __init__(self, model_name: str = "paraphrase-multilingual-MiniLM-L12-v2") -> None:
        """Initialize the local embedding provider.

        Args:
            model_name: Name of the sentence-transformers model.
        """
        self._model_name = model_name
        self._model: SentenceTransformer | None = None
        self._dimension: int | None = None

    @classmethod
    def create(
        cls, model_name: str = "paraphrase-multilingual-MiniLM-L12-v2"
    ) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider."""
        return cls(model_name=model_name)

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the embedding model."""
        if self._model is None:
            logger.info("Loading embedding model", model=self._model_name)
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name)
            elapsed = round(time.time() - start_time, 2)
            logger.info("Model loaded", model=self._model_name, seconds=elapsed)
        return self._model

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        if self._dimension is None:
            self._dimension = int(self.model.get_sentence_embedding_dimension())
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    def _encode_sync(self, text: str) -> list[float]:
        embedding = self.model.encode(
            text,
            show_progress_bar=False,
            normalize_embeddings=True,
        )
        if isinstance(embedding, np.ndarray):
            if embedding.ndim == 1:
                return embedding.tolist()
            return embedding[0].tolist()
        return list(embedding)

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            EmbeddingError: If the model cannot be loaded or encoding fails
        """
        try:
            return await asyncio.to_thread(self._encode_sync, text)
        except (OSError, RuntimeError, ValueError) as e:
            raise EmbeddingError(f"Local embedding failed: {e}") from e

    async def is_available(self) -> bool:
        """Check if the model can be loaded."""
        try:
            _ = await asyncio.to_thread(lambda: self.model)
            return True
        except (OSError, RuntimeError, ValueError):
            return False

    async def close(self) -> None:
        """Nothing to release; kept for symmetry with HTTP providers."""
        return None
