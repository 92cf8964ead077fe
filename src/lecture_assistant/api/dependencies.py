"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Collaborators built once in the lifespan from Settings
    - Anything already placed on app.state (tests) is used as-is
    - Dependency functions retrieve from request.app.state
    - No module-level client singletons
"""

from contextlib import asynccontextmanager
from typing import Annotated

import redis
from fastapi import Depends, FastAPI, Request

from lecture_assistant.config import Settings, get_redis_client
from lecture_assistant.entities import FingerprintMode
from lecture_assistant.handlers import AskHandler
from lecture_assistant.protocols import CacheStore, EmbeddingProvider, GenerationProvider
from lecture_assistant.repositories import (
    GeminiGenerationProvider,
    OllamaEmbeddingProvider,
    OpenAICompatibleGenerationProvider,
    RedisExactCacheRepository,
    RedisVectorCacheRepository,
)
from lecture_assistant.services import CacheService, ChatService, FingerprintService
from lecture_assistant.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def build_generation_provider(settings: Settings) -> GenerationProvider | None:
    """Build the configured generation provider, or None without a credential."""
    if not settings.generation_api_key:
        return None

    provider_cls = (
        GeminiGenerationProvider
        if settings.generation_provider == "gemini"
        else OpenAICompatibleGenerationProvider
    )
    return provider_cls.create(
        api_key=settings.generation_api_key,
        model_name=settings.generation_model,
        base_url=settings.generation_base_url,
        temperature=settings.generation_temperature,
        max_output_tokens=settings.generation_max_output_tokens,
        timeout=settings.generation_timeout_seconds,
    )


def build_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Build the embedding provider used in semantic mode."""
    if settings.embedding_backend == "local":
        # Imported here so exact mode never loads torch
        from lecture_assistant.repositories.local_embedding_provider import (
            LocalEmbeddingProvider,
        )

        if settings.embedding_model:
            return LocalEmbeddingProvider.create(model_name=settings.embedding_model)
        return LocalEmbeddingProvider.create()

    return OllamaEmbeddingProvider.create(
        model_name=settings.embedding_model or "embeddinggemma",
        base_url=settings.ollama_base_url,
    )


def build_cache_store(
    settings: Settings,
    redis_client: redis.Redis | None,
    embedding_provider: EmbeddingProvider | None,
) -> CacheStore | None:
    """Build the Redis store for the configured mode, or None without a client."""
    if redis_client is None:
        return None

    if settings.cache_mode == FingerprintMode.SEMANTIC.value:
        return RedisVectorCacheRepository.create(
            redis_client=redis_client,
            embedding_provider=embedding_provider,
            index_name=settings.cache_index_name,
            ttl=settings.cache_ttl,
            similarity_threshold=settings.cache_similarity_threshold,
        )

    return RedisExactCacheRepository.create(
        redis_client=redis_client,
        index_name=settings.cache_index_name,
        ttl=settings.cache_ttl,
    )


def get_handler(request: Request) -> AskHandler:
    """Dependency injection for AskHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "ask_handler", None)
    if handler is None:
        raise RuntimeError("AskHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Generation provider (None without a credential; requests then get 500)
    2. Embedding provider (semantic mode only)
    3. Cache store (None without REDIS_URL; caching silently disabled)
    4. Services and the AskHandler

    Cleanup:
        Closes HTTP clients and the Redis client built here and removes
        state on shutdown
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)

    semantic = settings.cache_mode == FingerprintMode.SEMANTIC.value
    owned = []

    generation_provider = getattr(app.state, "generation_provider", None)
    if generation_provider is None:
        generation_provider = build_generation_provider(settings)
        if generation_provider is not None:
            owned.append(generation_provider)

    cache_store = getattr(app.state, "cache_store", None)
    embedding_provider = getattr(app.state, "embedding_provider", None)
    if semantic and embedding_provider is None and (cache_store is not None or settings.cache_enabled):
        embedding_provider = build_embedding_provider(settings)
        owned.append(embedding_provider)

    redis_client = None
    if cache_store is None:
        redis_client = get_redis_client(settings)
        cache_store = build_cache_store(settings, redis_client, embedding_provider)

    chat_service = None
    if generation_provider is not None:
        chat_service = ChatService(
            provider=generation_provider,
            system_prompt_template=settings.system_prompt_template,
            locale=settings.response_locale,
        )
    else:
        logger.error("configuration_error", error="GENERATION_API_KEY is missing")

    cache_service = None
    if cache_store is not None:
        fingerprints = FingerprintService(
            mode=FingerprintMode(settings.cache_mode),
            embedding_provider=embedding_provider if semantic else None,
            key_max_chars=settings.cache_key_max_chars,
            context_prefix_chars=settings.context_prefix_chars,
        )
        cache_service = CacheService.create(repository=cache_store, fingerprints=fingerprints)
    else:
        logger.warning("cache_disabled", reason="REDIS_URL is not set")

    app.state.ask_handler = AskHandler(
        chat_service=chat_service,
        cache_service=cache_service,
        embedding_provider=embedding_provider if semantic else None,
        locale=settings.response_locale,
    )

    logger.info(
        "service_started",
        generation_provider=settings.generation_provider,
        model=settings.generation_model,
        cache_mode=settings.cache_mode if cache_service else "disabled",
    )

    yield

    for resource in owned:
        await resource.close()
    if redis_client is not None:
        redis_client.close()
    del app.state.ask_handler
    logger.info("service_stopped")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[AskHandler, Depends(get_handler)]
