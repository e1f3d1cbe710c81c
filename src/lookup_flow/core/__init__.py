"""Core record enrichment framework."""

from .stage import (
    Stage,
    StageManifest,
    OptionSpec,
)
from .registry import StageRegistry, register_stage, auto_discover_stages
from .context import ProcessingContext, OutputMode
from .diagnostics import DiagnosticWarning, WarningKind, WarningSink
from .errors import (
    EnrichmentError,
    ConfigurationError,
    BackendQueryError,
    PatternError,
    PathError,
    StageError,
)
from .bases import (
    SourceBasesStage,
    resolve_base,
    MissingBase,
    SingleBase,
    ManyBase,
    InvalidBase,
)
from .pipeline import EnrichmentPipeline, ProcessingResult

__all__ = [
    # Stage
    "Stage",
    "StageManifest",
    "OptionSpec",
    # Registry
    "StageRegistry",
    "register_stage",
    "auto_discover_stages",
    # Context
    "ProcessingContext",
    "OutputMode",
    # Diagnostics
    "DiagnosticWarning",
    "WarningKind",
    "WarningSink",
    # Errors
    "EnrichmentError",
    "ConfigurationError",
    "BackendQueryError",
    "PatternError",
    "PathError",
    "StageError",
    # Bases
    "SourceBasesStage",
    "resolve_base",
    "MissingBase",
    "SingleBase",
    "ManyBase",
    "InvalidBase",
    # Pipeline
    "EnrichmentPipeline",
    "ProcessingResult",
]
