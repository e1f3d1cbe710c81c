"""Search lookup engine and its configuration."""

from .config import (
    WHOLE_DOCUMENT,
    LookupConfig,
    MappingRule,
    NamedField,
    WholeDocument,
)
from .engine import LookupContext, LookupEngine

__all__ = [
    "LookupConfig",
    "LookupContext",
    "LookupEngine",
    "MappingRule",
    "NamedField",
    "WHOLE_DOCUMENT",
    "WholeDocument",
]
