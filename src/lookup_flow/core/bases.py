"""Repetition of a stage's work over structural "bases" within a record.

A base is a location in the record (e.g. "author" or "comments.author")
against which one processing cycle runs independently. Every path a stage
uses inside that cycle is resolved relative to the base object.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .context import ProcessingContext
from .diagnostics import WarningKind
from .errors import ConfigurationError, PathError
from .paths import extract_value, split_path
from .stage import Stage, is_empty

StateT = TypeVar("StateT")


@dataclass(frozen=True)
class MissingBase:
    """Base path resolved to nothing."""
    path: str


@dataclass(frozen=True)
class SingleBase:
    """Base path resolved to one object."""
    path: str
    target: dict[str, Any]


@dataclass(frozen=True)
class ManyBase:
    """Base path resolved to a list of objects."""
    path: str
    targets: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class InvalidBase:
    """Base path resolved to something that is not an object."""
    path: str
    value: Any


BaseShape = Union[MissingBase, SingleBase, ManyBase, InvalidBase]


def resolve_base(record: dict[str, Any], path: str) -> BaseShape:
    """Resolve a base path once into its shape."""
    value = extract_value(record, path)
    if value is None:
        return MissingBase(path)
    if isinstance(value, dict):
        return SingleBase(path, value)
    if isinstance(value, list):
        flattened = list(_flatten(value))
        if all(isinstance(item, dict) for item in flattened):
            return ManyBase(path, tuple(flattened))
    return InvalidBase(path, value)


def _flatten(items: list[Any]):
    for item in items:
        if isinstance(item, list):
            yield from _flatten(item)
        else:
            yield item


def parse_source_bases(stage_name: str, raw: Any) -> tuple[str, ...]:
    """Validate the source_bases option: absent, one path, or a list of paths."""
    if is_empty(raw):
        return ()
    values = [raw] if isinstance(raw, str) else raw
    if not isinstance(values, list):
        raise ConfigurationError(
            f"'settings/source_bases' for '{stage_name}' stage must be a list of field paths",
            field_path="settings/source_bases"
        )
    bases = []
    for i, value in enumerate(values):
        if not isinstance(value, str) or is_empty(value):
            raise ConfigurationError(
                f"Missing or empty 'settings/source_bases[{i}]' configuration value for '{stage_name}' stage",
                field_path=f"settings/source_bases[{i}]"
            )
        try:
            split_path(value)
        except PathError as e:
            raise ConfigurationError(
                f"Invalid 'settings/source_bases[{i}]' path for '{stage_name}' stage: {e}",
                field_path=f"settings/source_bases[{i}]"
            ) from e
        bases.append(value)
    return tuple(bases)


class SourceBasesStage(Stage, Generic[StateT]):
    """
    Stage which runs its processing cycle once per configured base.

    Without source_bases the cycle runs exactly once against the whole
    record. With source_bases the cycle repeats for each base, and for each
    object when a base resolves to a list of objects. One state object from
    create_state() is shared by every cycle of a single process() call.
    """

    source_bases: tuple[str, ...] = ()

    def configure(self) -> None:
        super().configure()
        self.source_bases = parse_source_bases(self.name, self.settings.get("source_bases"))

    @abstractmethod
    def create_state(self, record: dict[str, Any]) -> StateT:
        """Create the state shared by all cycles of one process() call."""
        pass

    @abstractmethod
    async def process_base(
        self,
        base: dict[str, Any],
        state: StateT,
        context: ProcessingContext
    ) -> None:
        """Run one processing cycle against one base object."""
        pass

    async def process(self, record: dict[str, Any], context: ProcessingContext) -> None:
        state = self.create_state(record)

        if not self.source_bases:
            await self.process_base(record, state, context)
            return

        for path in self.source_bases:
            shape = resolve_base(record, path)
            if isinstance(shape, SingleBase):
                await self.process_base(shape.target, state, context)
            elif isinstance(shape, ManyBase):
                for target in shape.targets:
                    await self.process_base(target, state, context)
            elif isinstance(shape, InvalidBase):
                context.add_warning(
                    f"Source base '{path}' does not contain an object or list of objects, so it is skipped.",
                    kind=WarningKind.INVALID_BASE
                )
