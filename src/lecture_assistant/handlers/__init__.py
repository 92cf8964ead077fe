"""Handler layer for HTTP endpoints.

Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (External collaborators)
"""

from .ask_handler import AskHandler

__all__ = [
    "AskHandler",
]
