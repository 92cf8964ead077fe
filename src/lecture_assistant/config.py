import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SYSTEM_PROMPT_TEMPLATE = (
    "You are a friendly study assistant for a lecture platform.\n"
    "Answer only questions about the reference content for this session.\n"
    "Start with a short, direct answer, use Markdown, and do not invent facts.\n"
    "\n"
    "Reference content for this session:\n"
    "---\n"
    "{context}\n"
    "---\n"
)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Build from the environment with ``Settings.from_env()``; tests build
    instances directly.
    """

    # Generation
    generation_provider: str = "gemini"
    generation_api_key: str | None = None
    generation_model: str = "gemini-2.0-flash"
    generation_base_url: str | None = None
    generation_temperature: float = 0.7
    generation_max_output_tokens: int = 800
    generation_timeout_seconds: float = 30.0

    # Cache store (optional)
    redis_url: str | None = None
    redis_password: str | None = None
    cache_mode: str = "exact"
    cache_similarity_threshold: float = 0.85
    cache_key_max_chars: int = 200
    context_prefix_chars: int = 2000
    cache_ttl: int = 2592000  # 30 days
    cache_index_name: str = "lecture_cache"

    # Embedding (semantic mode only)
    embedding_backend: str = "ollama"
    embedding_model: str | None = None  # None: backend default
    ollama_base_url: str = "http://localhost:11434"

    # Presentation
    response_locale: str = "en"
    system_prompt_template: str = DEFAULT_SYSTEM_PROMPT_TEMPLATE

    # API
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False
    allowed_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from environment variables (and ``.env``)."""
        origins = os.getenv("ALLOWED_ORIGINS", "*")
        return cls(
            generation_provider=os.getenv("GENERATION_PROVIDER", "gemini").lower(),
            generation_api_key=os.getenv("GENERATION_API_KEY") or os.getenv("GOOGLE_API_KEY"),
            generation_model=os.getenv("GENERATION_MODEL", "gemini-2.0-flash"),
            generation_base_url=os.getenv("GENERATION_BASE_URL"),
            generation_temperature=float(os.getenv("GENERATION_TEMPERATURE", "0.7")),
            generation_max_output_tokens=int(os.getenv("GENERATION_MAX_OUTPUT_TOKENS", "800")),
            generation_timeout_seconds=float(os.getenv("GENERATION_TIMEOUT_SECONDS", "30")),
            redis_url=os.getenv("REDIS_URL") or None,
            redis_password=os.getenv("REDIS_PASSWORD") or None,
            cache_mode=os.getenv("CACHE_MODE", "exact").lower(),
            cache_similarity_threshold=float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.85")),
            cache_key_max_chars=int(os.getenv("CACHE_KEY_MAX_CHARS", "200")),
            context_prefix_chars=int(os.getenv("CONTEXT_PREFIX_CHARS", "2000")),
            cache_ttl=int(os.getenv("CACHE_TTL", "2592000")),
            cache_index_name=os.getenv("CACHE_INDEX_NAME", "lecture_cache"),
            embedding_backend=os.getenv("EMBEDDING_BACKEND", "ollama").lower(),
            embedding_model=os.getenv("EMBEDDING_MODEL") or None,
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            response_locale=os.getenv("RESPONSE_LOCALE", "en").lower(),
            system_prompt_template=os.getenv(
                "SYSTEM_PROMPT_TEMPLATE", DEFAULT_SYSTEM_PROMPT_TEMPLATE
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
            api_reload=_env_bool("API_RELOAD", "false"),
            allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )

    @property
    def cache_enabled(self) -> bool:
        """Caching is on only when a store URL is configured."""
        return bool(self.redis_url)

    @property
    def cache_distance_threshold(self) -> float:
        """Cosine distance equivalent of the similarity threshold."""
        return 1.0 - self.cache_similarity_threshold

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.generation_provider not in ("gemini", "openai"):
            raise ValueError(
                f"GENERATION_PROVIDER must be 'gemini' or 'openai', got {self.generation_provider!r}"
            )

        if self.cache_mode not in ("exact", "semantic"):
            raise ValueError(f"CACHE_MODE must be 'exact' or 'semantic', got {self.cache_mode!r}")

        if not 0 <= self.cache_similarity_threshold <= 1:
            raise ValueError("CACHE_SIMILARITY_THRESHOLD must be between 0 and 1")

        if self.embedding_backend not in ("ollama", "local"):
            raise ValueError(
                f"EMBEDDING_BACKEND must be 'ollama' or 'local', got {self.embedding_backend!r}"
            )

        if self.cache_key_max_chars <= 0 or self.context_prefix_chars <= 0:
            raise ValueError("CACHE_KEY_MAX_CHARS and CONTEXT_PREFIX_CHARS must be positive")

        if self.generation_timeout_seconds <= 0:
            raise ValueError("GENERATION_TIMEOUT_SECONDS must be positive")

        if "{context}" not in self.system_prompt_template:
            raise ValueError("SYSTEM_PROMPT_TEMPLATE must contain a {context} placeholder")


@lru_cache
def get_settings() -> Settings:
    """Get settings read once from the environment."""
    return Settings.from_env()


def get_redis_client(settings: Settings) -> redis.Redis | None:
    """Create a Redis client, or None when no store is configured."""
    if not settings.redis_url:
        return None
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
