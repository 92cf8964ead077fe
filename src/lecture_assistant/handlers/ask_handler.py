"""HTTP handler for the ask endpoint.

Runs one request through Validate -> ExtractQuestion -> CacheLookup ->
Generate -> CacheWrite -> Respond. Cache bookkeeping is handed to FastAPI
BackgroundTasks so it runs after the response has been sent.
"""

import json
import time

from fastapi import BackgroundTasks, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from lecture_assistant.dto import (
    AskRequest,
    AskResponse,
    CacheStatsResponse,
    ErrorResponse,
    HealthCheckResponse,
)
from lecture_assistant.entities import ConversationTurn
from lecture_assistant.exceptions import CacheError, ClientError, ConfigurationError, ProviderError
from lecture_assistant.messages import get_message
from lecture_assistant.protocols import EmbeddingProvider
from lecture_assistant.services import CacheService, ChatService, last_user_turn
from lecture_assistant.utils.logger import get_logger, log_error

logger = get_logger(__name__)


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


class AskHandler:
    """HTTP handler for chat questions.

    This handler delegates business logic to ChatService and CacheService
    and handles HTTP-specific concerns like:
    - Method and body validation
    - Mapping errors to status codes and localized messages
    - Cache/latency headers

    Example:
        ```python
        handler = AskHandler(chat_service=chat, cache_service=cache)

        @app.post("/askAI")
        async def ask(request: Request, background_tasks: BackgroundTasks):
            return await handler.ask(request, background_tasks)
        ```
    """

    def __init__(
        self,
        chat_service: ChatService | None,
        cache_service: CacheService | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        locale: str = "en",
    ) -> None:
        """Initialize the ask handler.

        Args:
            chat_service: Generation service; None when no credential is configured
            cache_service: Cache service; None disables caching
            embedding_provider: Reported by the health check in semantic mode
            locale: Locale of user-facing messages
        """
        self._chat = chat_service
        self._cache = cache_service
        self._embeddings = embedding_provider
        self._locale = locale

    def _error(self, status_code: int, message_key: str, details: str | None = None) -> JSONResponse:
        body = ErrorResponse(error=get_message(message_key, self._locale), details=details)
        headers = {"Allow": "POST"} if status_code == status.HTTP_405_METHOD_NOT_ALLOWED else None
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(exclude_none=True),
            headers=headers,
        )

    def _reply(
        self,
        answer: str,
        cached: bool,
        start_time: float,
        hit_count: int | None = None,
        similarity: float | None = None,
    ) -> JSONResponse:
        elapsed = _elapsed_ms(start_time)
        body = AskResponse(
            reply=answer,
            cached=cached,
            source="cache" if cached else "ai",
            response_time=f"{elapsed}ms",
            hit_count=hit_count,
            similarity=similarity,
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=body.model_dump(by_alias=True, exclude_none=True),
            headers={
                "X-Cache-Status": "HIT" if cached else "MISS",
                "X-Response-Time": f"{elapsed}ms",
            },
        )

    def _require_chat(self) -> ChatService:
        if self._chat is None:
            raise ConfigurationError("Generation API credential is not configured")
        return self._chat

    async def _parse_body(self, request: Request) -> AskRequest:
        raw = await request.body()
        try:
            payload = json.loads(raw or b"null")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ClientError("invalid_body", details=str(e)) from e

        if not isinstance(payload, dict) or not isinstance(
            payload.get("conversationHistory"), list
        ):
            raise ClientError("invalid_history", details="conversationHistory must be an array")

        try:
            return AskRequest.model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ClientError("invalid_history", details=f"{location}: {first.get('msg')}") from e

    @staticmethod
    def _extract_question(turns: list[ConversationTurn]) -> ConversationTurn:
        question = last_user_turn(turns)
        if question is None or not question.text.strip():
            raise ClientError("no_question")
        return question

    async def ask(self, request: Request, background_tasks: BackgroundTasks) -> JSONResponse:
        """Handle a request to the ask route (any method).

        Args:
            request: Incoming request; only POST is served
            background_tasks: Where post-response cache work is scheduled

        Returns:
            JSONResponse with AskResponse (200) or ErrorResponse (4xx/5xx)
        """
        start_time = time.perf_counter()

        # Validate + ExtractQuestion
        try:
            if request.method != "POST":
                raise ClientError(
                    "method_not_allowed", status_code=status.HTTP_405_METHOD_NOT_ALLOWED
                )
            chat = self._require_chat()
            ask_request = await self._parse_body(request)
            turns = ask_request.to_turns()
            question = self._extract_question(turns)
        except ClientError as e:
            logger.info("request_rejected", status_code=e.status_code, reason=e.message, details=e.details)
            return self._error(e.status_code, e.message, e.details)
        except ConfigurationError as e:
            logger.error("configuration_error", error=str(e))
            return self._error(status.HTTP_500_INTERNAL_SERVER_ERROR, "configuration_error")

        context = ask_request.context

        # CacheLookup
        lookup = None
        if self._cache is not None:
            lookup = await self._cache.lookup(question.text, context)
            if lookup.entry is not None:
                entry = lookup.entry
                background_tasks.add_task(self._cache.record_hit, entry.entry_id)
                return self._reply(
                    entry.answer,
                    cached=True,
                    start_time=start_time,
                    hit_count=entry.hit_count + 1,
                    similarity=entry.similarity,
                )

        # Generate
        try:
            answer = await chat.answer(turns, context)
        except ProviderError as e:
            log_error(e, context="generation", status_code=e.status_code)
            return self._error(status.HTTP_500_INTERNAL_SERVER_ERROR, "generation_failed")

        # CacheWrite (after the response)
        if self._cache is not None and lookup is not None and not answer.is_fallback:
            background_tasks.add_task(self._cache.remember, question.text, lookup, answer.text)

        return self._reply(answer.text, cached=False, start_time=start_time)

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        generation = "configured" if self._chat is not None else "missing_credentials"

        if self._cache is None:
            cache = "disabled"
        else:
            cache = "healthy" if self._cache.is_healthy() else "unhealthy"

        if self._embeddings is None:
            embedding = "disabled"
        else:
            embedding = "healthy" if await self._embeddings.is_available() else "unhealthy"

        healthy = generation == "configured" and "unhealthy" not in (cache, embedding)
        return HealthCheckResponse(
            status="healthy" if healthy else "degraded",
            generation=generation,
            cache=cache,
            embedding=embedding,
        )

    async def get_stats(self) -> CacheStatsResponse | JSONResponse:
        """Handle GET /stats requests.

        Returns:
            CacheStatsResponse, or a 503 ErrorResponse when the store
            cannot be read
        """
        if self._cache is None:
            return CacheStatsResponse(status="disabled")

        try:
            stats = self._cache.get_stats()
        except CacheError as e:
            log_error(e, context="cache_stats")
            return self._error(status.HTTP_503_SERVICE_UNAVAILABLE, "cache_unavailable")

        return CacheStatsResponse(status="enabled", **stats)
