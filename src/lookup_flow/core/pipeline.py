"""Enrichment pipeline - runs a chain of stages over records."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable

import yaml

from .context import ProcessingContext
from .diagnostics import DiagnosticWarning
from .errors import ConfigurationError, EnrichmentError, StageError
from .registry import StageRegistry
from .stage import Stage

if TYPE_CHECKING:
    from ..search.client import SearchClient

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Result of running the pipeline over one record."""
    record: dict[str, Any]
    warnings: list[DiagnosticWarning] = field(default_factory=list)
    duration_seconds: float = 0.0


class EnrichmentPipeline:
    """
    Runs an ordered chain of stages over records, one record at a time.

    A pipeline definition lists its stages:

        {
            "name": "people",
            "stages": [
                {"name": "Author lookup", "type": "enrich/search_lookup", "settings": {...}}
            ]
        }

    Every stage gets the same search client. Each record is processed with a
    fresh ProcessingContext, so warnings and per-record state never leak
    from one record to the next.
    """

    def __init__(
        self,
        search_client: "SearchClient | None" = None,
        registry: StageRegistry | None = None,
    ):
        self.search_client = search_client
        self.registry = registry or StageRegistry.get_instance()
        self.name: str = "pipeline"
        self.stages: list[Stage] = []
        self._stats = {
            "records_processed": 0,
            "warnings": 0,
        }

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    def load(self, definition: dict[str, Any] | list[dict[str, Any]] | str | Path) -> None:
        """
        Load a pipeline from a dict, a list of stage definitions, or a
        YAML/JSON file path.

        Raises:
            ConfigurationError: If the definition or any stage settings are invalid
        """
        # Import stages to register them
        from .. import stages  # noqa: F401

        if isinstance(definition, (str, Path)):
            definition = load_definition_file(Path(definition))

        if isinstance(definition, list):
            definition = {"stages": definition}
        if not isinstance(definition, dict):
            raise ConfigurationError("Pipeline definition must be an object or a list of stages")

        stage_defs = definition.get("stages")
        if not stage_defs or not isinstance(stage_defs, list):
            raise ConfigurationError("Pipeline definition has no 'stages' list", field_path="stages")

        self.name = definition.get("name", "pipeline")
        self.stages = [self._instantiate_stage(i, d) for i, d in enumerate(stage_defs)]
        logger.info(f"Loaded pipeline '{self.name}' with {len(self.stages)} stage(s)")

    def _instantiate_stage(self, index: int, stage_def: Any) -> Stage:
        if not isinstance(stage_def, dict):
            raise ConfigurationError(
                f"Stage definition stages[{index}] must be an object",
                field_path=f"stages[{index}]"
            )
        name = stage_def.get("name") or f"stage-{index}"
        stage_type = stage_def.get("type") or stage_def.get("class")
        if not stage_type:
            raise ConfigurationError(
                f"Stage '{name}' missing 'type'",
                field_path=f"stages[{index}]/type"
            )
        stage = self.registry.create(stage_type, name, stage_def.get("settings"), self.search_client)
        logger.debug(f"  - {name}: {stage_type}")
        return stage

    async def process(self, record: dict[str, Any]) -> ProcessingResult:
        """
        Run all stages over one record, mutating it in place.

        Raises:
            EnrichmentError: On configuration or contract errors (e.g. a
                target path crossing a non-object value)
            StageError: Wrapping any other error raised by a stage
        """
        if not self.stages:
            raise ConfigurationError("No pipeline loaded")

        context = ProcessingContext()
        start_time = time.time()

        for stage in self.stages:
            context.stage_name = stage.name
            try:
                await stage.process(record, context)
            except EnrichmentError:
                raise
            except Exception as e:
                raise StageError(
                    f"Error in stage '{stage.name}': {type(e).__name__}: {e}",
                    stage_name=stage.name,
                    cause=e
                ) from e

        warnings = context.collected_warnings()
        self._stats["records_processed"] += 1
        self._stats["warnings"] += len(warnings)

        return ProcessingResult(
            record=record,
            warnings=warnings,
            duration_seconds=time.time() - start_time,
        )

    async def process_many(
        self,
        records: Iterable[dict[str, Any]]
    ) -> AsyncIterator[ProcessingResult]:
        """Process records strictly in sequence, yielding each result."""
        for record in records:
            yield await self.process(record)

    async def aclose(self) -> None:
        """Close the search client."""
        if self.search_client is not None:
            await self.search_client.aclose()


def load_definition_file(path: Path) -> Any:
    """Read a pipeline definition from a YAML or JSON file."""
    if not path.exists():
        raise ConfigurationError(f"Pipeline definition not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid pipeline definition {path}: {e}") from e
