"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract (camelCase on the
wire). Internal domain logic uses entities from the entities package.
"""

from .requests import AskRequest, ConversationTurnItem
from .responses import AskResponse, CacheStatsResponse, ErrorResponse, HealthCheckResponse

__all__ = [
    "AskRequest",
    "AskResponse",
    "CacheStatsResponse",
    "ConversationTurnItem",
    "ErrorResponse",
    "HealthCheckResponse",
]
