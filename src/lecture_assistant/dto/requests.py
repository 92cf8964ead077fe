"""Request DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lecture_assistant.entities import ConversationTurn, Role


class ConversationTurnItem(BaseModel):
    """One turn of the chat history as sent by the client."""

    role: Literal["user", "assistant"] = Field(..., description="Author of the turn")
    content: str = Field(..., description="Text of the turn")

    def to_entity(self) -> ConversationTurn:
        return ConversationTurn(role=Role(self.role), text=self.content)


class AskRequest(BaseModel):
    """Request DTO for the ask endpoint.

    The handler will convert this to internal calls to the service layer.
    """

    model_config = ConfigDict(populate_by_name=True)

    conversation_history: list[ConversationTurnItem] = Field(
        ...,
        alias="conversationHistory",
        description="Ordered chat history; the last user turn is the question",
    )
    context: str = Field(
        "",
        description="Lecture content the answer must be grounded in",
    )

    @field_validator("context", mode="before")
    @classmethod
    def none_context_is_empty(cls, value: object) -> object:
        return "" if value is None else value

    def to_turns(self) -> list[ConversationTurn]:
        return [item.to_entity() for item in self.conversation_history]
