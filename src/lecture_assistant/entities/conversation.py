"""Conversation turn domain entity."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """A single turn of the chat history supplied with a request."""

    role: Role
    text: str
