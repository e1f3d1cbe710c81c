"""Non-fatal data warnings collected while a record is processed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)


class WarningKind(Enum):
    """Category of a data warning."""
    GENERAL = "general"
    NO_RESULT = "no_result"
    AMBIGUOUS_RESULT = "ambiguous_result"
    MISSING_RESULT_FIELD = "missing_result_field"
    BACKEND_FAILURE = "backend_failure"
    INVALID_BASE = "invalid_base"


@dataclass(frozen=True)
class DiagnosticWarning:
    """A single data warning attached to one record's processing."""
    message: str
    kind: WarningKind = WarningKind.GENERAL
    stage: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.stage}] " if self.stage else ""
        return f"{prefix}{self.message}"

    def to_dict(self) -> dict[str, str | None]:
        return {"message": self.message, "kind": self.kind.value, "stage": self.stage}


class WarningSink:
    """
    Accumulates data warnings for the record currently being processed.

    Adding a warning never raises; warnings are informational and never
    change the control flow of a stage.
    """

    def __init__(self):
        self._warnings: list[DiagnosticWarning] = []

    def add(
        self,
        message: str,
        kind: WarningKind = WarningKind.GENERAL,
        stage: str | None = None
    ) -> None:
        """Append a warning."""
        warning = DiagnosticWarning(message=message, kind=kind, stage=stage)
        self._warnings.append(warning)
        logger.debug(str(warning))

    @property
    def warnings(self) -> list[DiagnosticWarning]:
        return list(self._warnings)

    @property
    def messages(self) -> list[str]:
        return [w.message for w in self._warnings]

    def of_kind(self, kind: WarningKind) -> list[DiagnosticWarning]:
        """Get warnings of one category."""
        return [w for w in self._warnings if w.kind == kind]

    def __len__(self) -> int:
        return len(self._warnings)

    def __iter__(self) -> Iterator[DiagnosticWarning]:
        return iter(list(self._warnings))
