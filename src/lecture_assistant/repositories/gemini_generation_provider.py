"""Gemini ``generateContent`` generation provider.

Request shape:
    POST {base_url}/models/{model}:generateContent
    {"systemInstruction": {...}, "contents": [...], "generationConfig": {...}}

The API key travels in the ``x-goog-api-key`` header rather than the query
string so it never shows up in access logs.
"""

from typing import Any

import httpx

from lecture_assistant.entities import (
    ConversationTurn,
    GenerationBlocked,
    GenerationMalformed,
    GenerationResult,
    GenerationSuccess,
    Role,
)
from lecture_assistant.exceptions import ProviderError

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# finishReason values meaning the candidate was withheld
BLOCKING_FINISH_REASONS = {
    "SAFETY",
    "RECITATION",
    "BLOCKLIST",
    "PROHIBITED_CONTENT",
    "SPII",
    "IMAGE_SAFETY",
}

_ROLE_NAMES = {Role.USER: "user", Role.ASSISTANT: "model"}


def decode_gemini_response(data: Any) -> GenerationResult:
    """Decode a generateContent payload into a result variant.

    Args:
        data: Parsed JSON body of a 2xx response

    Returns:
        GenerationSuccess with the joined text parts, GenerationBlocked when
        the prompt or candidate was filtered, GenerationMalformed otherwise
    """
    if not isinstance(data, dict):
        return GenerationMalformed(detail="response is not a JSON object")

    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return GenerationBlocked(reason=str(feedback["blockReason"]))

    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return GenerationMalformed(detail="no candidates")

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return GenerationMalformed(detail="candidate is not an object")

    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    texts = []
    if isinstance(parts, list):
        texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    text = "".join(texts).strip()

    if text:
        return GenerationSuccess(text=text)

    finish_reason = candidate.get("finishReason")
    if finish_reason in BLOCKING_FINISH_REASONS:
        return GenerationBlocked(reason=str(finish_reason))

    return GenerationMalformed(detail=f"candidate has no text (finishReason={finish_reason})")


class GeminiGenerationProvider:
    """Gemini implementation of the GenerationProvider protocol.

    Example:
        ```python
        provider = GeminiGenerationProvider.create(api_key="...")
        result = await provider.generate(system_instruction, turns)
        ```
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.0-flash",
        base_url: str | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 800,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Gemini provider.

        Args:
            api_key: Google AI API key
            model_name: Model id, e.g. "gemini-2.0-flash"
            base_url: API base, defaults to the public v1beta endpoint
            temperature: Sampling temperature
            max_output_tokens: Output token cap
            timeout: Request timeout in seconds
            client: Optional pre-built HTTP client (tests inject a mock transport)
        """
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
        model_name: str = "gemini-2.0-flash",
        base_url: str | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 800,
        timeout: float = 30.0,
    ) -> "GeminiGenerationProvider":
        """Factory method to create GeminiGenerationProvider."""
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
        """Build the generateContent request body."""
        return {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [
                {"role": _ROLE_NAMES[turn.role], "parts": [{"text": turn.text}]} for turn in turns
            ],
            "generationConfig": {
                "temperature": self._temperature,
                "maxOutputTokens": self._max_output_tokens,
            },
        }

    async def generate(
        self,
        system_instruction: str,
        turns: list[ConversationTurn],
    ) -> GenerationResult:
        """Call generateContent once.

        Raises:
            ProviderError: On non-2xx status, transport error or timeout
        """
        url = f"{self._base_url}/models/{self._model_name}:generateContent"
        payload = self.build_payload(system_instruction, turns)

        try:
            response = await self.client.post(
                url,
                json=payload,
                headers={"x-goog-api-key": self._api_key},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError(f"Gemini request timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            raise ProviderError(
                f"Gemini API error {response.status_code}: {message}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return GenerationMalformed(detail="response body is not JSON")

        return decode_gemini_response(data)

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or "Unknown error"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return "Unknown error"
