from typing import Any

from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lecture_assistant.api.dependencies import HandlerDep, lifespan
from lecture_assistant.config import Settings, get_settings
from lecture_assistant.dto import CacheStatsResponse, HealthCheckResponse
from lecture_assistant.messages import get_message
from lecture_assistant.protocols import CacheStore, EmbeddingProvider, GenerationProvider
from lecture_assistant.utils.logger import log_error

# Non-POST methods reach the handler and get its JSON 405; OPTIONS stays with CORS
ASK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

ROUTING_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


def create_app(
    settings: Settings | None = None,
    *,
    generation_provider: GenerationProvider | None = None,
    cache_store: CacheStore | None = None,
    embedding_provider: EmbeddingProvider | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use. Defaults to the environment.
        generation_provider: Pre-built provider (skips building from settings).
        cache_store: Pre-built store (enables caching regardless of REDIS_URL).
        embedding_provider: Pre-built embedding provider for semantic mode.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    locale = settings.response_locale

    app = FastAPI(
        title="Lecture Assistant API",
        description="Answers lecture questions through a generative model with a cache-aside layer",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if generation_provider is not None:
        app.state.generation_provider = generation_provider
    if cache_store is not None:
        app.state.cache_store = cache_store
    if embedding_provider is not None:
        app.state.embedding_provider = embedding_provider

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=list(settings.allowed_origins),
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Cache-Status", "X-Response-Time"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        key = ROUTING_MESSAGES.get(exc.status_code)
        message = get_message(key, locale) if key else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": get_message("invalid_body", locale), "details": str(exc.errors()[:1])},
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        log_error(exc, context="unhandled", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": get_message("generation_failed", locale)},
        )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Lecture Assistant API",
            "version": "0.1.0",
            "endpoints": {
                "ask": "/askAI",
                "health": "/health",
                "stats": "/stats",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.get("/stats", response_model=CacheStatsResponse, response_model_exclude_none=True)
    async def stats(handler: HandlerDep):
        """Cache statistics."""
        return await handler.get_stats()

    @app.api_route("/askAI", methods=ASK_METHODS)
    @app.api_route("/api/askAI", methods=ASK_METHODS, include_in_schema=False)
    async def ask(
        request: Request, background_tasks: BackgroundTasks, handler: HandlerDep
    ) -> JSONResponse:
        """
        Answer the last user question of a conversation.

        Body: ``{"conversationHistory": [{"role", "content"}], "context": str}``.
        """
        return await handler.ask(request, background_tasks)

    return app


app = create_app()


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "lecture_assistant.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    main()
