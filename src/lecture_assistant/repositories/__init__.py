"""Repository layer for external collaborators.

This layer hides the cache store, the embedding service and the generation
API behind protocol-based interfaces. The repositories are protocol-based
(structural typing), not inheritance-based.
"""

from lecture_assistant.protocols import CacheStore, EmbeddingProvider, GenerationProvider

from .gemini_generation_provider import GeminiGenerationProvider
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .openai_generation_provider import OpenAICompatibleGenerationProvider
from .redis_exact_repository import RedisExactCacheRepository
from .redis_vector_repository import RedisVectorCacheRepository

__all__ = [
    "CacheStore",
    "EmbeddingProvider",
    "GenerationProvider",
    "GeminiGenerationProvider",
    "OllamaEmbeddingProvider",
    "OpenAICompatibleGenerationProvider",
    "RedisExactCacheRepository",
    "RedisVectorCacheRepository",
]
