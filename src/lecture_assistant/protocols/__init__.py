"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Swapping the store (Redis hashes, Redis vector index, anything else)
- Swapping the generation vendor (Gemini, OpenAI-compatible, ...)
- Unit testing with in-memory fakes
"""

from .cache_store import CacheStore
from .embedding_provider import EmbeddingProvider
from .generation_provider import GenerationProvider

__all__ = [
    "CacheStore",
    "EmbeddingProvider",
    "GenerationProvider",
]
