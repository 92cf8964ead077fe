"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cache_entry import CacheEntryEntity
from .conversation import ConversationTurn, Role
from .fingerprint import Fingerprint, FingerprintMode
from .generation import (
    GenerationBlocked,
    GenerationMalformed,
    GenerationResult,
    GenerationSuccess,
)

__all__ = [
    "CacheEntryEntity",
    "ConversationTurn",
    "Fingerprint",
    "FingerprintMode",
    "GenerationBlocked",
    "GenerationMalformed",
    "GenerationResult",
    "GenerationSuccess",
    "Role",
]
