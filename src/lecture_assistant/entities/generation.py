"""Generation result variants.

Providers decode their response into exactly one of these at the HTTP
boundary. Transport and status failures are raised as ProviderError instead.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationSuccess:
    """The provider returned answer text."""

    text: str


@dataclass(frozen=True)
class GenerationBlocked:
    """The provider refused to answer (e.g. a safety filter)."""

    reason: str


@dataclass(frozen=True)
class GenerationMalformed:
    """The provider answered 2xx but the payload had no usable text."""

    detail: str


GenerationResult = GenerationSuccess | GenerationBlocked | GenerationMalformed
