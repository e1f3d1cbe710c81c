"""Value map stage - translate a record value through a static dictionary."""

from __future__ import annotations

import copy
from typing import Any

from ...core.bases import SourceBasesStage
from ...core.context import ProcessingContext
from ...core.errors import ConfigurationError, PatternError
from ...core.paths import extract_value, put_value
from ...core.patterns import check_pattern, render
from ...core.registry import register_stage
from ...core.stage import OptionSpec, StageManifest


@register_stage("enrich/value_map")
class ValueMapStage(SourceBasesStage[None]):
    """
    Look up a value from a dictionary using a key taken from the record.

    Unmapped values get value_default (a pattern, {__original} is the
    source value) or, without a default, are copied to the target as-is.
    List values are mapped element by element.
    """

    @classmethod
    def describe(cls) -> StageManifest:
        return StageManifest(
            type="enrich/value_map",
            description="Map record values through a static dictionary",
            category="enrich",
            options={
                "source_field": OptionSpec(
                    type="string",
                    required=True,
                    description="Field holding the value to map (dot notation)"
                ),
                "target_field": OptionSpec(
                    type="string",
                    required=True,
                    description="Field to store the mapped value into; may equal source_field"
                ),
                "value_mapping": OptionSpec(
                    type="dict",
                    required=True,
                    description="Dictionary of source value -> mapped value"
                ),
                "value_default": OptionSpec(
                    type="string",
                    description="Pattern used for unmapped values"
                ),
                "source_bases": OptionSpec(
                    type="list",
                    description="Fields the mapping is repeated for; other paths are relative to them"
                ),
            }
        )

    def configure(self) -> None:
        super().configure()
        self.source_field = self.get_setting("source_field")
        self.target_field = self.get_setting("target_field")
        self.value_mapping = self.get_setting("value_mapping")
        if not isinstance(self.value_mapping, dict):
            raise ConfigurationError(
                f"'settings/value_mapping' for '{self.name}' stage must be an object",
                field_path="settings/value_mapping"
            )
        self.value_default = self.get_setting("value_default")
        if self.value_default is not None:
            try:
                check_pattern(self.value_default)
            except PatternError as e:
                raise ConfigurationError(
                    f"Invalid pattern in 'settings/value_default' for '{self.name}' stage: {e}",
                    field_path="settings/value_default"
                ) from e

    def create_state(self, record: dict[str, Any]) -> None:
        return None

    def map_value(self, value: Any, base: dict[str, Any]) -> Any:
        """Map one scalar value."""
        if value is None:
            return None
        lookup = value if isinstance(value, str) else str(value)
        if lookup in self.value_mapping:
            return copy.deepcopy(self.value_mapping[lookup])
        if self.value_default is not None:
            return render(self.value_default, base, original_value=value)
        return value

    async def process_base(
        self,
        base: dict[str, Any],
        state: None,
        context: ProcessingContext
    ) -> None:
        value = extract_value(base, self.source_field)
        if value is None:
            return

        if isinstance(value, (list, tuple)):
            mapped = [self.map_value(v, base) for v in value]
            put_value(base, self.target_field, [v for v in mapped if v is not None])
        else:
            put_value(base, self.target_field, self.map_value(value, base))
