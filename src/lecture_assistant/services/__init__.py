"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (External collaborators)
"""

from .cache_service import CacheLookup, CacheService
from .chat_service import ChatAnswer, ChatService, last_user_turn, turns_for_generation
from .fingerprint_service import FingerprintService

__all__ = [
    "CacheLookup",
    "CacheService",
    "ChatAnswer",
    "ChatService",
    "FingerprintService",
    "last_user_turn",
    "turns_for_generation",
]
