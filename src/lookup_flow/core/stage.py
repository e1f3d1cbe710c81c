"""Base stage class and specification types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError

if TYPE_CHECKING:
    from ..search.client import SearchClient
    from .context import ProcessingContext


@dataclass
class OptionSpec:
    """Specification for a stage settings option."""
    type: str  # "string", "boolean", "list", "dict", "string|list"
    required: bool = False
    default: Any = None
    description: str = ""


@dataclass
class StageManifest:
    """Self-description of a stage's settings."""
    type: str  # e.g., "enrich/search_lookup"
    description: str
    options: dict[str, OptionSpec] = field(default_factory=dict)
    category: str = "enrich"
    requires_search_client: bool = False


def is_empty(value: Any) -> bool:
    """True for None, blank strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


class Stage(ABC):
    """
    Base class for all record enrichment stages.

    A pipeline runs its stages in order over each record. Each stage:
    - Declares its settings via describe()
    - Validates its settings once, at construction (fail fast)
    - Mutates the record in place via process()
    """

    def __init__(
        self,
        name: str,
        settings: dict[str, Any] | None,
        search_client: "SearchClient | None" = None
    ):
        """
        Initialize stage with name, settings and collaborators.

        Args:
            name: Name of this stage instance in the pipeline (used in messages)
            settings: Settings section from the pipeline definition
            search_client: Search backend handle, for stages that query one

        Raises:
            ConfigurationError: If settings are missing or invalid
        """
        self.name = name
        self.search_client = search_client
        if settings is None:
            raise ConfigurationError(
                f"'settings' section is not defined for stage {name}",
                field_path="settings"
            )
        if not isinstance(settings, dict):
            raise ConfigurationError(
                f"'settings' section of stage {name} must be an object",
                field_path="settings"
            )
        self.settings = settings
        self.configure()

    def configure(self) -> None:
        """
        Validate settings and prepare stage state.

        Override to add stage specific validation; call super() to keep
        the manifest checks.
        """
        self._validate_settings()

    def _validate_settings(self) -> None:
        """Validate settings against manifest."""
        manifest = self.describe()
        for option, spec in manifest.options.items():
            if spec.required and is_empty(self.settings.get(option)):
                raise ConfigurationError(
                    f"Missing or empty 'settings/{option}' configuration value for '{self.name}' stage",
                    field_path=f"settings/{option}"
                )

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get settings value with fallback to the option default."""
        if key in self.settings:
            return self.settings[key]
        manifest = self.describe()
        if key in manifest.options:
            return manifest.options[key].default
        return default

    @classmethod
    @abstractmethod
    def describe(cls) -> StageManifest:
        """Return the stage's manifest describing its settings."""
        pass

    @abstractmethod
    async def process(
        self,
        record: dict[str, Any],
        context: "ProcessingContext"
    ) -> None:
        """
        Enrich one record in place.

        Args:
            record: The record to enrich; mutated in place
            context: Processing context of this record (warnings etc.)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
