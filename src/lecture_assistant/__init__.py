"""Lecture Assistant - cache-aside answers to lecture questions.

A single HTTP endpoint forwards a student's question and the lecture
context to a generative-language API, optionally serving and populating a
cache of earlier question-answer pairs.

Layers:
    - protocols: Interface contracts (CacheStore, EmbeddingProvider, GenerationProvider)
    - repositories: Redis stores, embedding and generation clients
    - services: Fingerprints, cache-aside and chat orchestration
    - handlers: HTTP request state machine
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

For HTTP API:
    ```python
    from lecture_assistant.api.app import create_app

    app = create_app()
    ```
"""

from lecture_assistant.config import Settings, get_settings
from lecture_assistant.dto import AskRequest, AskResponse
from lecture_assistant.entities import CacheEntryEntity, ConversationTurn, Fingerprint
from lecture_assistant.exceptions import (
    AppError,
    CacheError,
    ClientError,
    ConfigurationError,
    EmbeddingError,
    ProviderError,
)
from lecture_assistant.handlers import AskHandler
from lecture_assistant.protocols import CacheStore, EmbeddingProvider, GenerationProvider
from lecture_assistant.services import CacheService, ChatService, FingerprintService

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Protocols (interfaces)
    "CacheStore",
    "EmbeddingProvider",
    "GenerationProvider",
    # Services (business logic)
    "CacheService",
    "ChatService",
    "FingerprintService",
    # Handlers (HTTP)
    "AskHandler",
    # Entities (domain models)
    "CacheEntryEntity",
    "ConversationTurn",
    "Fingerprint",
    # DTOs (API contracts)
    "AskRequest",
    "AskResponse",
    # Errors
    "AppError",
    "CacheError",
    "ClientError",
    "ConfigurationError",
    "EmbeddingError",
    "ProviderError",
]
