"""Utility modules for the lecture assistant."""

from .hasher import context_fingerprint, normalize_question, storage_key
from .logger import get_logger, setup_logging

__all__ = [
    "context_fingerprint",
    "get_logger",
    "normalize_question",
    "setup_logging",
    "storage_key",
]
