"""OpenAI-compatible ``chat/completions`` generation provider.

Works with any endpoint speaking the chat completions wire format
(Hugging Face router, OpenAI, Ollama's /v1, vLLM, ...).
"""

from typing import Any

import httpx

from lecture_assistant.entities import (
    ConversationTurn,
    GenerationBlocked,
    GenerationMalformed,
    GenerationResult,
    GenerationSuccess,
)
from lecture_assistant.exceptions import ProviderError

DEFAULT_BASE_URL = "https://router.huggingface.co/v1"


def decode_chat_completion(data: Any) -> GenerationResult:
    """Decode a chat completions payload into a result variant."""
    if not isinstance(data, dict):
        return GenerationMalformed(detail="response is not a JSON object")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return GenerationMalformed(detail="no choices")

    choice = choices[0]
    message = choice.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content.strip():
        return GenerationSuccess(text=content.strip())

    if choice.get("finish_reason") == "content_filter":
        return GenerationBlocked(reason="content_filter")

    finish_reason = choice.get("finish_reason")
    return GenerationMalformed(detail=f"choice has no content (finish_reason={finish_reason})")


class OpenAICompatibleGenerationProvider:
    """Chat completions implementation of the GenerationProvider protocol."""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 800,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model_name = model_name
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = timeout
        self._client = client

    @classmethod
    def create(
        cls,
        api_key: str,
        model_name: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 800,
        timeout: float = 30.0,
    ) -> "OpenAICompatibleGenerationProvider":
        """Factory method to create OpenAICompatibleGenerationProvider."""
        return cls(
            api_key=api_key,
            model_name=model_name,
            base_url=base_url,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            timeout=timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
        return self._model_name

    def build_payload(self, system_instruction: str, turns: list[ConversationTurn]) -> dict:
        """Build the chat completions request body."""
        messages = [{"role": "system", "content": system_instruction}]
        messages.extend({"role": turn.role.value, "content": turn.text} for turn in turns)
        return {
            "model": self._model_name,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_output_tokens,
        }

    async def generate(
        self,
        system_instruction: str,
        turns: list[ConversationTurn],
    ) -> GenerationResult:
        """Call chat/completions once.

        Raises:
            ProviderError: On non-2xx status, transport error or timeout
        """
        try:
            response = await self.client.post(
                f"{self._base_url}/chat/completions",
                json=self.build_payload(system_instruction, turns),
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError(f"Completion request timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Completion request failed: {e}") from e

        if not response.is_success:
            raise ProviderError(
                f"Completion API error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return GenerationMalformed(detail="response body is not JSON")

        return decode_chat_completion(data)

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
