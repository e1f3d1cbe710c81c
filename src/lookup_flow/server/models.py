"""Pydantic models for the lookup-flow API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# === Enrichment Models ===

class WarningInfo(BaseModel):
    """A data warning raised while enriching a record."""
    message: str
    kind: str = "general"
    stage: str | None = None


class EnrichRequest(BaseModel):
    """Request to enrich one record."""
    record: dict[str, Any]


class EnrichResponse(BaseModel):
    """Enriched record with the warnings collected for it."""
    record: dict[str, Any]
    warnings: list[WarningInfo] = Field(default_factory=list)
    duration_seconds: float = 0.0


class BatchEnrichRequest(BaseModel):
    """Request to enrich several records in order."""
    records: list[dict[str, Any]]


class BatchEnrichResponse(BaseModel):
    """Results in the order the records were sent."""
    results: list[EnrichResponse] = Field(default_factory=list)
    total: int = 0
    warnings: int = 0
    duration_seconds: float = 0.0


# === Stage Models ===

class StageSchema(BaseModel):
    """Full stage manifest."""
    type: str
    description: str
    category: str
    requires_search_client: bool = False
    options: dict[str, dict[str, Any]] = Field(default_factory=dict)


class StageListResponse(BaseModel):
    """Response listing stage types by category."""
    stages: dict[str, list[str]]
    total: int


# === Health Check ===

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "0.1.0"
    pipeline: str | None = None
    stage_count: int = 0
    uptime_seconds: float = 0.0
