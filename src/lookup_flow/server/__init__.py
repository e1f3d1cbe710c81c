"""lookup-flow HTTP service."""

from .app import create_app
from .models import (
    StageSchema,
    StageListResponse,
    WarningInfo,
    EnrichRequest,
    EnrichResponse,
    BatchEnrichRequest,
    BatchEnrichResponse,
    HealthResponse,
)

__all__ = [
    "create_app",
    "StageSchema",
    "StageListResponse",
    "WarningInfo",
    "EnrichRequest",
    "EnrichResponse",
    "BatchEnrichRequest",
    "BatchEnrichResponse",
    "HealthResponse",
]
