"""
Pytest configuration and fixtures.

Provides in-memory implementations of the protocols so API and service
tests run without Redis, Ollama or a generation API.
"""

import math
import time
import uuid

import pytest
from fastapi.testclient import TestClient

from lecture_assistant.api.app import create_app
from lecture_assistant.config import Settings
from lecture_assistant.entities import (
    CacheEntryEntity,
    ConversationTurn,
    Fingerprint,
    FingerprintMode,
    GenerationResult,
    GenerationSuccess,
)
from lecture_assistant.exceptions import CacheError, EmbeddingError, ProviderError


def _cosine(a: tuple[float, ...], b: tuple[float, ...]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryCacheStore:
    """CacheStore backed by a dict; counts every call."""

    def __init__(self, similarity_threshold: float = 0.85) -> None:
        self.entries: dict[str, dict] = {}
        self.similarity_threshold = similarity_threshold
        self.lookups = 0
        self.writes: list[dict] = []
        self.touches: list[str] = []
        self.fail_lookup = False
        self.fail_write = False
        self.fail_touch = False
        self.fail_stats = False

    def lookup(self, fingerprint: Fingerprint, partition_key: str) -> CacheEntryEntity | None:
        self.lookups += 1
        if self.fail_lookup:
            raise CacheError("lookup unavailable")

        best = None
        best_similarity = -1.0
        for entry_id, record in self.entries.items():
            if record["partition_key"] != partition_key:
                continue
            stored: Fingerprint = record["fingerprint"]
            if fingerprint.mode is FingerprintMode.EXACT:
                if stored.key == fingerprint.key:
                    return self._entity(entry_id, record)
                continue
            similarity = _cosine(stored.vector, fingerprint.vector)
            if similarity >= self.similarity_threshold and similarity > best_similarity:
                best, best_similarity = entry_id, similarity

        if best is None:
            return None
        return self._entity(best, self.entries[best], similarity=best_similarity)

    def _entity(self, entry_id: str, record: dict, similarity: float | None = None) -> CacheEntryEntity:
        return CacheEntryEntity(
            entry_id=entry_id,
            question=record["question"],
            answer=record["answer"],
            context_fingerprint=record["partition_key"],
            hit_count=record["hit_count"],
            created_at=record["created_at"],
            last_accessed=record["last_accessed"],
            fingerprint_key=record["fingerprint"].key,
            similarity=min(1.0, similarity) if similarity is not None else None,
        )

    def touch(self, entry_id: str) -> None:
        self.touches.append(entry_id)
        if self.fail_touch:
            raise CacheError("touch unavailable")
        record = self.entries.get(entry_id)
        if record is not None:
            record["hit_count"] += 1
            record["last_accessed"] = time.time()

    def write(self, question: str, fingerprint: Fingerprint, answer: str, partition_key: str) -> str:
        record = {
            "question": question,
            "fingerprint": fingerprint,
            "answer": answer,
            "partition_key": partition_key,
            "hit_count": 1,
            "created_at": time.time(),
            "last_accessed": time.time(),
        }
        self.writes.append(record)
        if self.fail_write:
            raise CacheError("write unavailable")
        entry_id = uuid.uuid4().hex
        self.entries[entry_id] = record
        return entry_id

    def health_check(self) -> bool:
        return not self.fail_lookup

    def get_stats(self) -> dict:
        if self.fail_stats:
            raise CacheError("stats unavailable")
        return {
            "mode": "exact",
            "index_name": "memory",
            "total_entries": len(self.entries),
            "ttl_seconds": 0,
        }


class FakeGenerationProvider:
    """GenerationProvider returning queued results; records every call."""

    def __init__(self, text: str = "A cell is the basic unit of life.") -> None:
        self.result: GenerationResult = GenerationSuccess(text=text)
        self.error: Exception | None = None
        self.calls: list[tuple[str, list[ConversationTurn]]] = []
        self.closed = False

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate(self, system_instruction: str, turns: list[ConversationTurn]) -> GenerationResult:
        self.calls.append((system_instruction, list(turns)))
        if self.error is not None:
            raise self.error
        return self.result

    def fail_with(self, message: str = "provider down", status_code: int | None = 503) -> None:
        self.error = ProviderError(message, status_code=status_code)

    async def close(self) -> None:
        self.closed = True


class FakeEmbeddingProvider:
    """EmbeddingProvider with fixed vectors per text."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = vectors or {}
        self.calls: list[str] = []
        self.fail = False

    @property
    def dimension(self) -> int:
        return 3

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    async def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingError("embedding service down")
        return self.vectors.get(text, [0.0, 0.0, 1.0])

    async def is_available(self) -> bool:
        return not self.fail

    async def close(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    """Settings with a generation credential and no Redis."""
    return Settings(generation_api_key="test-key")


@pytest.fixture
def generator() -> FakeGenerationProvider:
    return FakeGenerationProvider()


@pytest.fixture
def store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def make_client():
    """Factory building a TestClient with lifespan run; closed after the test."""
    clients = []

    def _make(settings: Settings, **overrides) -> TestClient:
        client = TestClient(create_app(settings, **overrides))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def cell_request() -> dict:
    return {
        "conversationHistory": [{"role": "user", "content": "What is a cell?"}],
        "context": "Biology: cells are the basic unit of life.",
    }
