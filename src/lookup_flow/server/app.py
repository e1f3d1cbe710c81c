"""FastAPI application factory for the lookup-flow service."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import load_config
from ..core import EnrichmentPipeline, ConfigurationError
from ..search.client import HttpSearchClient
from .routes import router

logger = logging.getLogger(__name__)


async def build_pipeline(config: dict[str, Any]) -> EnrichmentPipeline | None:
    """Build the configured pipeline, or None if no pipeline is configured."""
    pipeline_path = config.get("pipeline")
    if not pipeline_path:
        logger.warning("No pipeline configured - enrichment endpoints are unavailable")
        return None

    search_client = HttpSearchClient.from_config(config["search"])
    pipeline = EnrichmentPipeline(search_client=search_client)
    try:
        pipeline.load(Path(pipeline_path))
    except ConfigurationError:
        await search_client.aclose()
        raise
    return pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Startup
    app.state.start_time = time.time()

    # Import stages to register them
    from .. import stages  # noqa: F401

    owns_pipeline = app.state.pipeline is None
    if owns_pipeline:
        config = load_config(app.state.config_path)
        app.state.pipeline = await build_pipeline(config)

    yield

    # Shutdown
    if owns_pipeline and app.state.pipeline is not None:
        await app.state.pipeline.aclose()
        app.state.pipeline = None


def create_app(
    config_path: Path | None = None,
    pipeline: EnrichmentPipeline | None = None,
    title: str = "lookup-flow",
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    A pre-built pipeline is used as-is and left open at shutdown; otherwise
    the pipeline named in the configuration is loaded at startup.
    """
    app = FastAPI(
        title=title,
        version=__version__,
        description="HTTP API for enriching records with search index lookups",
        lifespan=lifespan,
    )
    app.state.config_path = config_path
    app.state.pipeline = pipeline
    app.state.start_time = time.time()

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app
