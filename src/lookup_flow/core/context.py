"""Per-record processing context."""

from __future__ import annotations

from enum import Enum

from .diagnostics import DiagnosticWarning, WarningKind, WarningSink


class OutputMode(Enum):
    """Controls how much the runner reports."""
    QUIET = 0   # Warnings and errors only
    NORMAL = 1  # Progress and summaries (default)
    DEBUG = 2   # Everything + per-lookup details


class ProcessingContext:
    """
    State attached to the processing of one record by a pipeline.

    A fresh context is created for every record, so nothing in here leaks
    between records. Stages add data warnings through add_warning(), which
    tags them with the stage currently running.
    """

    def __init__(self, warnings: WarningSink | None = None):
        self.warnings = warnings if warnings is not None else WarningSink()
        self.stage_name: str | None = None

    def add_warning(self, message: str, kind: WarningKind = WarningKind.GENERAL) -> None:
        """Add a data warning for the current record."""
        self.warnings.add(message, kind=kind, stage=self.stage_name)

    def collected_warnings(self) -> list[DiagnosticWarning]:
        return self.warnings.warnings
