"""Chat service: prompt assembly and answer extraction.

Builds the system instruction from the lecture context, prepares the turn
list for the provider, and turns blocked or malformed generations into the
localized fallback sentence. ProviderError is not caught here.
"""

import time
from dataclasses import dataclass

from lecture_assistant.entities import (
    ConversationTurn,
    GenerationBlocked,
    GenerationMalformed,
    GenerationSuccess,
    Role,
)
from lecture_assistant.messages import get_message
from lecture_assistant.protocols import GenerationProvider
from lecture_assistant.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChatAnswer:
    """Answer text and whether it is the fallback sentence."""

    text: str
    is_fallback: bool = False


def last_user_turn(turns: list[ConversationTurn]) -> ConversationTurn | None:
    """Return the most recent user turn, or None if there is none."""
    for turn in reversed(turns):
        if turn.role is Role.USER:
            return turn
    return None


def turns_for_generation(turns: list[ConversationTurn]) -> list[ConversationTurn]:
    """Turns to send to the provider.

    Everything up to and including the last user turn, with original roles.
    Assistant turns after the question are dropped so the question is always
    the final, user-role turn.
    """
    for index in range(len(turns) - 1, -1, -1):
        if turns[index].role is Role.USER:
            return list(turns[: index + 1])
    return []


class ChatService:
    """Generates answers through a GenerationProvider."""

    def __init__(
        self,
        provider: GenerationProvider,
        system_prompt_template: str,
        locale: str = "en",
    ) -> None:
        """Initialize the chat service.

        Args:
            provider: Generation backend (required)
            system_prompt_template: Template with a ``{context}`` placeholder
            locale: Locale of the fallback sentence
        """
        self._provider = provider
        self._template = system_prompt_template
        self._locale = locale

    @property
    def provider(self) -> GenerationProvider:
        return self._provider

    def build_system_instruction(self, context: str | None) -> str:
        """Fill the template with the lecture context (or a no-content marker)."""
        body = (context or "").strip()
        if not body:
            body = get_message("no_context", self._locale)
        return self._template.replace("{context}", body)

    async def answer(self, turns: list[ConversationTurn], context: str | None) -> ChatAnswer:
        """Generate an answer for the conversation.

        Args:
            turns: Full conversation history of the request
            context: Lecture context

        Returns:
            ChatAnswer with model text, or the fallback sentence when the
            provider blocked the request or returned nothing usable

        Raises:
            ProviderError: If the provider call itself failed
        """
        system_instruction = self.build_system_instruction(context)
        start_time = time.time()
        result = await self._provider.generate(system_instruction, turns_for_generation(turns))
        duration_ms = (time.time() - start_time) * 1000

        if isinstance(result, GenerationSuccess):
            logger.info(
                "generation_call",
                model=self._provider.model_name,
                duration_ms=round(duration_ms, 1),
                chars=len(result.text),
            )
            return ChatAnswer(text=result.text)

        if isinstance(result, GenerationBlocked):
            logger.warning("generation_fallback", outcome="blocked", reason=result.reason)
        elif isinstance(result, GenerationMalformed):
            logger.warning("generation_fallback", outcome="malformed", detail=result.detail)

        return ChatAnswer(text=get_message("fallback_answer", self._locale), is_fallback=True)
