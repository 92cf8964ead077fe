"""Generation provider protocol.

Defines the interface for the external generative-language API.

Implementations:
- Gemini ``generateContent``
- OpenAI-compatible ``chat/completions``
"""

from typing import Protocol, runtime_checkable

from lecture_assistant.entities import ConversationTurn, GenerationResult


@runtime_checkable
class GenerationProvider(Protocol):
    """Protocol for generative-language services."""

    @property
    def model_name(self) -> str:
        """Return the model identifier sent to the provider."""
        ...

    async def generate(
        self,
        system_instruction: str,
        turns: list[ConversationTurn],
    ) -> GenerationResult:
        """Call the provider once and decode its answer.

        Args:
            system_instruction: System prompt including the lecture context
            turns: Ordered conversation; roles are sent unchanged

        Returns:
            GenerationSuccess, GenerationBlocked or GenerationMalformed

        Raises:
            ProviderError: On non-2xx status, transport error or timeout
        """
        ...

    async def close(self) -> None:
        """Release HTTP resources."""
        ...
