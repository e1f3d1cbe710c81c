"""Error types raised by enrichment stages and their collaborators."""

from __future__ import annotations


class EnrichmentError(Exception):
    """Base exception for all enrichment errors."""
    pass


class ConfigurationError(EnrichmentError):
    """Stage or pipeline configuration is missing or malformed.

    Raised at initialization; the stage cannot be used until fixed.
    """

    def __init__(self, message: str, field_path: str | None = None):
        super().__init__(message)
        self.field_path = field_path


class BackendQueryError(EnrichmentError):
    """A query against the search backend failed (transport or query error)."""

    def __init__(
        self,
        message: str,
        index: str | None = None,
        search_field: str | None = None,
        cause: Exception | None = None
    ):
        super().__init__(message)
        self.index = index
        self.search_field = search_field
        self.cause = cause


class PatternError(EnrichmentError):
    """A value pattern with {placeholders} is malformed."""

    def __init__(self, message: str, template: str | None = None):
        super().__init__(message)
        self.template = template


class PathError(EnrichmentError):
    """A value cannot be written at a dotted path."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class StageError(EnrichmentError):
    """Unexpected error within a stage while processing a record."""

    def __init__(
        self,
        message: str,
        stage_name: str,
        cause: Exception | None = None
    ):
        super().__init__(message)
        self.stage_name = stage_name
        self.cause = cause
