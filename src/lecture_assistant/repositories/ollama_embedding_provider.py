"""Ollama-based embedding provider.

Uses Ollama's local API to generate embeddings for semantic cache
fingerprints.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull embeddinggemma`
    - Ollama running: `ollama serve`
"""

import httpx

from lecture_assistant.exceptions import EmbeddingError


class OllamaEmbeddingProvider:
    """Ollama-based implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(
            model_name="embeddinggemma",
            base_url="http://localhost:11434"
        )
        embedding = await provider.encode("What is a cell?")
        print(len(embedding))  # 768
        ```
    """

    # Known model dimensions (for common models)
    MODEL_DIMENSIONS = {
        "embeddinggemma": 768,
        "embeddinggemma:300m": 768,
        "nomic-embed-text": 768,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
        "all-minilm:l6-v2": 384,
    }

    def __init__(
        self,
        model_name: str = "embeddinggemma",
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Ollama embedding provider.

        Args:
            model_name: Name of the Ollama model
            base_url: Ollama API base URL
            timeout: Request timeout in seconds
            client: Optional pre-built HTTP client (tests inject a mock transport)
        """
        self._model_name = model_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._dimension: int | None = None
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        model_name: str = "embeddinggemma",
        base_url: str = "http://localhost:11434",
    ) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider."""
        return cls(model_name=model_name, base_url=base_url)

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension.

        Known models return their fixed dimension; unknown models report
        768 until the first encode reveals the real size.
        """
        if self._dimension is None:
            self._dimension = self.MODEL_DIMENSIONS.get(self._model_name, 768)
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            EmbeddingError: If the Ollama request fails or the payload is unusable
        """
        url = f"{self._base_url}/api/embed"
        payload = {
            "model": self._model_name,
            "input": text,
        }

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            error_msg = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                error_msg += " (is Ollama running? Try: ollama serve)"
            raise EmbeddingError(error_msg) from e
        except ValueError as e:
            raise EmbeddingError(f"Ollama returned invalid JSON: {e}") from e

        # Ollama returns {"embeddings": [[...]]} for single input
        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if isinstance(embeddings, list) and embeddings:
            vector = embeddings[0]
        elif isinstance(data, dict) and "embedding" in data:
            vector = data["embedding"]
        else:
            raise EmbeddingError(f"Unexpected Ollama response format: {str(data)[:200]}")

        if not isinstance(vector, list) or not vector:
            raise EmbeddingError(f"Ollama returned an empty or invalid vector: {str(vector)[:200]}")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector):
            raise EmbeddingError("Ollama returned a vector with non-numeric values")

        self._dimension = len(vector)
        return [float(v) for v in vector]

    async def is_available(self) -> bool:
        """Check if Ollama is running and the model answers."""
        try:
            _ = await self.encode("test")
            return True
        except EmbeddingError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
