"""Stage registry for type-based instantiation with auto-discovery."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Type

from .errors import ConfigurationError

if TYPE_CHECKING:
    from ..search.client import SearchClient
    from .stage import Stage

logger = logging.getLogger(__name__)


class StageRegistry:
    """
    Registry mapping stage type strings to stage classes.

    This allows pipeline definitions to reference stages by type string
    (e.g., "enrich/search_lookup") and have the pipeline instantiate the
    correct class.
    """

    _instance: "StageRegistry | None" = None

    def __init__(self):
        self._stages: dict[str, Type["Stage"]] = {}

    @classmethod
    def get_instance(cls) -> "StageRegistry":
        """Get the singleton registry instance."""
        if cls._instance is None:
            cls._instance = StageRegistry()
        return cls._instance

    def register(self, stage_type: str, stage_class: Type["Stage"]) -> None:
        """
        Register a stage class under a type string.

        Args:
            stage_type: Type identifier (e.g., "enrich/value_map")
            stage_class: The stage class to register
        """
        if stage_type in self._stages:
            raise ValueError(f"Stage type already registered: {stage_type}")
        self._stages[stage_type] = stage_class

    def get(self, stage_type: str) -> Type["Stage"] | None:
        """Get a stage class by type string."""
        return self._stages.get(stage_type)

    def create(
        self,
        stage_type: str,
        name: str,
        settings: dict[str, Any] | None,
        search_client: "SearchClient | None" = None
    ) -> "Stage":
        """
        Create a stage instance.

        Raises:
            ConfigurationError: If stage type is not registered or the
                stage rejects its settings
        """
        stage_class = self.get(stage_type)
        if stage_class is None:
            raise ConfigurationError(
                f"Unknown stage type '{stage_type}' for stage {name}",
                field_path="type"
            )
        return stage_class(name, settings, search_client=search_client)

    def list_types(self) -> list[str]:
        """List all registered stage types."""
        return sorted(self._stages.keys())

    def list_by_category(self, category: str) -> list[str]:
        """List stage types in a category."""
        return [t for t in self.list_types() if t.startswith(f"{category}/")]

    def get_manifest(self, stage_type: str) -> dict | None:
        """Get the manifest for a stage type as plain data."""
        stage_class = self.get(stage_type)
        if stage_class is None:
            return None
        manifest = stage_class.describe()
        return {
            "type": manifest.type,
            "description": manifest.description,
            "category": manifest.category,
            "requires_search_client": manifest.requires_search_client,
            "options": {k: {"type": v.type, "required": v.required, "default": v.default,
                            "description": v.description}
                        for k, v in manifest.options.items()},
        }


def register_stage(stage_type: str):
    """
    Decorator to register a stage class.

    Usage:
        @register_stage("enrich/search_lookup")
        class SearchLookupStage(SourceBasesStage):
            ...
    """
    def decorator(cls: Type["Stage"]) -> Type["Stage"]:
        StageRegistry.get_instance().register(stage_type, cls)
        return cls
    return decorator


def auto_discover_stages(stages_path: Path | str, base_package: str) -> list[str]:
    """
    Import every stage module in each category directory under a package.

    Stages with @register_stage decorators register themselves on import.

    Args:
        stages_path: Path to the stages package directory
        base_package: Dotted name of that package (e.g. "lookup_flow.stages")

    Returns:
        List of newly discovered stage type strings
    """
    stages_path = Path(stages_path)
    if not stages_path.exists():
        return []

    registry = StageRegistry.get_instance()
    before = set(registry.list_types())

    for category_dir in sorted(stages_path.iterdir()):
        if not category_dir.is_dir() or category_dir.name.startswith("_"):
            continue

        for py_file in sorted(category_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            full_module = f"{base_package}.{category_dir.name}.{py_file.stem}"
            importlib.import_module(full_module)
            logger.debug(f"Imported stage module {full_module}")

    after = set(registry.list_types())
    return sorted(after - before)
