"""Validated configuration of a search lookup.

LookupConfig.from_settings() checks the raw stage settings once, at stage
initialization, and fails fast with a ConfigurationError naming the
offending option. The result is immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ..core.errors import ConfigurationError, PatternError
from ..core.patterns import check_pattern
from ..core.stage import is_empty

CFG_INDEX_NAME = "index_name"
CFG_INDEX_TYPE = "index_type"
CFG_SOURCE_FIELD = "source_field"
CFG_SOURCE_VALUE = "source_value"
CFG_IDX_SEARCH_FIELD = "idx_search_field"
CFG_RESULT_MAPPING = "result_mapping"
CFG_IDX_RESULT_FIELD = "idx_result_field"
CFG_TARGET_FIELD = "target_field"
CFG_VALUE_DEFAULT = "value_default"
CFG_IGNORE_MULTIPLE_RESULTS = "result_multiple_ignore"

# idx_result_field value selecting the whole matched document
WHOLE_DOCUMENT_FIELD = "_source"

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}


@dataclass(frozen=True)
class NamedField:
    """Result taken from one named field of the matched document."""
    name: str


@dataclass(frozen=True)
class WholeDocument:
    """Result is the whole matched document."""


WHOLE_DOCUMENT = WholeDocument()

ResultField = Union[NamedField, WholeDocument]


def parse_result_field(raw: str) -> ResultField:
    if raw == WHOLE_DOCUMENT_FIELD:
        return WHOLE_DOCUMENT
    return NamedField(raw)


@dataclass(frozen=True)
class MappingRule:
    """Maps one field of the matched document to a target field of the record."""
    result_field: ResultField
    target_field: str
    default_value: str | None = None

    @property
    def requested_field(self) -> str | None:
        """Name to request from the backend, None for the whole document."""
        if isinstance(self.result_field, NamedField):
            return self.result_field.name
        return None

    @property
    def result_field_name(self) -> str:
        if isinstance(self.result_field, NamedField):
            return self.result_field.name
        return WHOLE_DOCUMENT_FIELD


@dataclass(frozen=True)
class LookupConfig:
    """Immutable configuration of one search lookup stage."""
    index_name: str
    index_type: str
    search_fields: tuple[str, ...]
    rules: tuple[MappingRule, ...]
    source_field: str | None = None
    source_value: str | None = None
    ignore_multiple_results: bool = False

    @property
    def requested_fields(self) -> list[str]:
        """Distinct named result fields, in rule order."""
        requested: list[str] = []
        for rule in self.rules:
            name = rule.requested_field
            if name is not None and name not in requested:
                requested.append(name)
        return requested

    @classmethod
    def from_settings(cls, stage_name: str, settings: dict[str, Any]) -> "LookupConfig":
        """
        Validate raw stage settings.

        Raises:
            ConfigurationError: naming the offending settings path
        """
        index_name = _require_string(stage_name, settings, CFG_INDEX_NAME)
        index_type = _require_string(stage_name, settings, CFG_INDEX_TYPE)

        source_field = _optional_string(stage_name, settings, CFG_SOURCE_FIELD)
        source_value = _optional_string(stage_name, settings, CFG_SOURCE_VALUE)
        if source_field is None and source_value is None:
            raise ConfigurationError(
                f"At least one of 'settings/{CFG_SOURCE_FIELD}' or 'settings/{CFG_SOURCE_VALUE}' "
                f"configuration value must be defined for '{stage_name}' stage",
                field_path=f"settings/{CFG_SOURCE_FIELD}"
            )
        if source_field is not None and source_value is not None:
            raise ConfigurationError(
                f"Only one of 'settings/{CFG_SOURCE_FIELD}' or 'settings/{CFG_SOURCE_VALUE}' "
                f"configuration value may be defined for '{stage_name}' stage",
                field_path=f"settings/{CFG_SOURCE_VALUE}"
            )
        if source_value is not None:
            _check_pattern(stage_name, source_value, f"settings/{CFG_SOURCE_VALUE}")

        rules = _parse_result_mapping(stage_name, settings.get(CFG_RESULT_MAPPING))
        search_fields = _parse_search_fields(stage_name, settings.get(CFG_IDX_SEARCH_FIELD))

        return cls(
            index_name=index_name,
            index_type=index_type,
            search_fields=search_fields,
            rules=rules,
            source_field=source_field,
            source_value=source_value,
            ignore_multiple_results=parse_bool(
                stage_name, settings.get(CFG_IGNORE_MULTIPLE_RESULTS), CFG_IGNORE_MULTIPLE_RESULTS
            ),
        )


def _missing(stage_name: str, path: str) -> ConfigurationError:
    return ConfigurationError(
        f"Missing or empty 'settings/{path}' configuration value for '{stage_name}' stage",
        field_path=f"settings/{path}"
    )


def _require_string(stage_name: str, settings: dict[str, Any], option: str) -> str:
    value = _optional_string(stage_name, settings, option)
    if value is None:
        raise _missing(stage_name, option)
    return value


def _optional_string(stage_name: str, settings: dict[str, Any], option: str) -> str | None:
    value = settings.get(option)
    if is_empty(value):
        return None
    if not isinstance(value, str):
        raise ConfigurationError(
            f"'settings/{option}' for '{stage_name}' stage must be a string",
            field_path=f"settings/{option}"
        )
    return value


def _check_pattern(stage_name: str, template: str, path: str) -> None:
    try:
        check_pattern(template)
    except PatternError as e:
        raise ConfigurationError(
            f"Invalid pattern in '{path}' for '{stage_name}' stage: {e}",
            field_path=path
        ) from e


def _parse_search_fields(stage_name: str, raw: Any) -> tuple[str, ...]:
    values = [raw] if isinstance(raw, str) else raw
    if is_empty(values):
        raise _missing(stage_name, CFG_IDX_SEARCH_FIELD)
    if not isinstance(values, list):
        raise ConfigurationError(
            f"'settings/{CFG_IDX_SEARCH_FIELD}' for '{stage_name}' stage must be a field name "
            f"or a list of field names",
            field_path=f"settings/{CFG_IDX_SEARCH_FIELD}"
        )
    for i, value in enumerate(values):
        if not isinstance(value, str) or is_empty(value):
            raise _missing(stage_name, f"{CFG_IDX_SEARCH_FIELD}[{i}]")
    return tuple(values)


def _parse_result_mapping(stage_name: str, raw: Any) -> tuple[MappingRule, ...]:
    if is_empty(raw) or not isinstance(raw, list):
        raise ConfigurationError(
            f"Missing or empty 'settings/{CFG_RESULT_MAPPING}' configuration array for '{stage_name}' stage",
            field_path=f"settings/{CFG_RESULT_MAPPING}"
        )

    rules = []
    for i, record in enumerate(raw):
        if not isinstance(record, dict):
            raise ConfigurationError(
                f"'settings/{CFG_RESULT_MAPPING}[{i}]' for '{stage_name}' stage must be an object",
                field_path=f"settings/{CFG_RESULT_MAPPING}[{i}]"
            )
        result_field = record.get(CFG_IDX_RESULT_FIELD)
        if not isinstance(result_field, str) or is_empty(result_field):
            raise _missing(stage_name, f"{CFG_RESULT_MAPPING}/{CFG_IDX_RESULT_FIELD}")
        target_field = record.get(CFG_TARGET_FIELD)
        if not isinstance(target_field, str) or is_empty(target_field):
            raise _missing(stage_name, f"{CFG_RESULT_MAPPING}/{CFG_TARGET_FIELD}")

        default_value = record.get(CFG_VALUE_DEFAULT)
        if default_value is not None:
            if not isinstance(default_value, str):
                default_value = str(default_value)
            _check_pattern(stage_name, default_value, f"settings/{CFG_RESULT_MAPPING}[{i}]/{CFG_VALUE_DEFAULT}")

        rules.append(MappingRule(
            result_field=parse_result_field(result_field),
            target_field=target_field,
            default_value=default_value,
        ))
    return tuple(rules)


def parse_bool(stage_name: str, raw: Any, option: str, default: bool = False) -> bool:
    """Parse a boolean option given as bool, number or string."""
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigurationError(
        f"'settings/{option}' for '{stage_name}' stage must be a boolean, got {raw!r}",
        field_path=f"settings/{option}"
    )
