"""
Application exceptions.

Only ClientError, ConfigurationError and ProviderError ever become non-200
responses. CacheError and EmbeddingError are caught inside the cache layer
and downgrade the request to "no cache".
"""


class AppError(Exception):
    """Base exception for application errors."""

    pass


class ClientError(AppError):
    """Raised when the inbound request is unusable (400/405).

    ``message`` is a key into ``lecture_assistant.messages.MESSAGES``.
    """

    def __init__(self, message: str, status_code: int = 400, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ConfigurationError(AppError):
    """Raised when a required setting such as the generation credential is missing."""

    pass


class ProviderError(AppError):
    """Raised when the generation provider call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmbeddingError(ProviderError):
    """Raised when embedding generation fails."""

    pass


class CacheError(AppError):
    """Raised when a cache store operation fails."""

    pass
