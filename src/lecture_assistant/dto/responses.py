"""Response DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AskResponse(BaseModel):
    """Response DTO for a successful ask."""

    model_config = ConfigDict(populate_by_name=True)

    reply: str = Field(..., description="Answer text")
    cached: bool = Field(..., description="Whether the answer came from the cache")
    source: Literal["cache", "ai"] = Field(..., description="Where the answer came from")
    response_time: str | None = Field(
        None,
        alias="responseTime",
        description="Server-side handling time, e.g. '412ms'",
    )
    hit_count: int | None = Field(
        None,
        alias="hitCount",
        description="Times the cached entry has been served, including this one",
        ge=1,
    )
    similarity: float | None = Field(
        None,
        description="Cosine similarity of a semantic cache hit",
        ge=0.0,
        le=1.0,
    )


class ErrorResponse(BaseModel):
    """Response DTO for 4xx/5xx outcomes."""

    error: str = Field(..., description="User-facing error message")
    details: str | None = Field(None, description="Request-shape detail, never provider internals")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: Literal["healthy", "degraded"] = Field(..., description="Overall status")
    generation: Literal["configured", "missing_credentials"] = Field(
        ..., description="Whether a generation credential is configured"
    )
    cache: Literal["healthy", "unhealthy", "disabled"] = Field(
        ..., description="Cache store reachability"
    )
    embedding: Literal["healthy", "unhealthy", "disabled"] = Field(
        ..., description="Embedding service reachability (semantic mode only)"
    )


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["enabled", "disabled"] = Field(..., description="Whether caching is on")
    mode: Literal["exact", "semantic"] | None = Field(None, description="Fingerprint mode")
    index_name: str | None = Field(None, alias="indexName", description="Key prefix / index name")
    total_entries: int | None = Field(
        None,
        alias="totalEntries",
        description="Total number of cached entries",
        ge=0,
    )
    ttl_seconds: int | None = Field(
        None,
        alias="ttlSeconds",
        description="Time-to-live for cache entries in seconds",
        ge=0,
    )
    similarity_threshold: float | None = Field(
        None,
        alias="similarityThreshold",
        description="Minimum cosine similarity of a semantic hit",
        ge=0.0,
        le=1.0,
    )
