"""API route handlers for the lookup-flow service."""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException, Request

from .. import __version__
from ..core import EnrichmentError, EnrichmentPipeline, ProcessingResult, StageRegistry
from .models import (
    BatchEnrichRequest,
    BatchEnrichResponse,
    EnrichRequest,
    EnrichResponse,
    HealthResponse,
    StageListResponse,
    StageSchema,
    WarningInfo,
)


router = APIRouter()


def get_pipeline(request: Request) -> EnrichmentPipeline:
    """Get the loaded pipeline or fail with 503."""
    pipeline = request.app.state.pipeline
    if pipeline is None:
        raise HTTPException(status_code=503, detail="No pipeline configured")
    return pipeline


def to_response(result: ProcessingResult) -> EnrichResponse:
    return EnrichResponse(
        record=result.record,
        warnings=[WarningInfo(**w.to_dict()) for w in result.warnings],
        duration_seconds=result.duration_seconds,
    )


# === Health ===

@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    """Check service health."""
    pipeline = request.app.state.pipeline

    return HealthResponse(
        status="healthy",
        version=__version__,
        pipeline=pipeline.name if pipeline is not None else None,
        stage_count=len(pipeline.stages) if pipeline is not None else 0,
        uptime_seconds=time.time() - request.app.state.start_time,
    )


# === Enrichment ===

@router.post("/enrich", response_model=EnrichResponse, tags=["Enrichment"])
async def enrich_record(request: Request, body: EnrichRequest) -> EnrichResponse:
    """Run the pipeline over one record."""
    pipeline = get_pipeline(request)

    try:
        result = await pipeline.process(body.record)
    except EnrichmentError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return to_response(result)


@router.post("/enrich/batch", response_model=BatchEnrichResponse, tags=["Enrichment"])
async def enrich_batch(request: Request, body: BatchEnrichRequest) -> BatchEnrichResponse:
    """Run the pipeline over several records, one after another."""
    pipeline = get_pipeline(request)
    start_time = time.time()

    results = []
    for i, record in enumerate(body.records):
        try:
            result = await pipeline.process(record)
        except EnrichmentError as e:
            raise HTTPException(status_code=422, detail=f"Record {i}: {e}")
        results.append(to_response(result))

    return BatchEnrichResponse(
        results=results,
        total=len(results),
        warnings=sum(len(r.warnings) for r in results),
        duration_seconds=time.time() - start_time,
    )


# === Stages ===

@router.get("/stages", response_model=StageListResponse, tags=["Stages"])
async def list_stages() -> StageListResponse:
    """List all stage types grouped by category."""
    from .. import stages  # noqa: F401

    registry = StageRegistry.get_instance()
    by_category: dict[str, list[str]] = {}
    for stage_type in registry.list_types():
        category, _, name = stage_type.partition("/")
        by_category.setdefault(category, []).append(name)

    return StageListResponse(
        stages=by_category,
        total=sum(len(v) for v in by_category.values()),
    )


@router.get("/stages/{category}/{name}", response_model=StageSchema, tags=["Stages"])
async def get_stage_schema(category: str, name: str) -> StageSchema:
    """Get the full manifest of a stage type."""
    from .. import stages  # noqa: F401

    stage_type = f"{category}/{name}"
    manifest = StageRegistry.get_instance().get_manifest(stage_type)
    if manifest is None:
        raise HTTPException(status_code=404, detail=f"Stage '{stage_type}' not found")

    return StageSchema(**manifest)
