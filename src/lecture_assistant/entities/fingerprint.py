"""Question fingerprint domain entity."""

from dataclasses import dataclass
from enum import Enum


class FingerprintMode(str, Enum):
    """How a question is compared against cached questions."""

    EXACT = "exact"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class Fingerprint:
    """Comparable representation of a question.

    Exactly one of ``key`` (exact mode) or ``vector`` (semantic mode) is set.
    """

    mode: FingerprintMode
    key: str | None = None
    vector: tuple[float, ...] | None = None

    @classmethod
    def exact(cls, key: str) -> "Fingerprint":
        return cls(mode=FingerprintMode.EXACT, key=key)

    @classmethod
    def semantic(cls, vector: list[float]) -> "Fingerprint":
        return cls(mode=FingerprintMode.SEMANTIC, vector=tuple(vector))
