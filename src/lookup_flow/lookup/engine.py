"""Lookup of one key value in the search backend, with fallback and defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Hashable

from ..core.diagnostics import WarningKind, WarningSink
from ..core.errors import BackendQueryError
from ..core.patterns import render
from ..search.client import FIELD_ABSENT, SearchClient, SearchHit
from .config import LookupConfig, MappingRule, WholeDocument

logger = logging.getLogger(__name__)


@dataclass
class LookupContext:
    """
    State of one stage invocation over one record.

    Holds the lookup cache (key -> target field values) and whether a
    backend failure was already warned about. Created fresh for every
    record so nothing is shared between records.
    """
    cache: dict[Hashable, dict[str, Any]] = field(default_factory=dict)
    backend_failure_warned: bool = False


def cache_key(value: Any) -> Hashable:
    """Make a hashable cache key for a lookup key value."""
    if isinstance(value, dict):
        return ("__dict__", tuple(sorted((str(k), cache_key(v)) for k, v in value.items())))
    if isinstance(value, (list, tuple)):
        return ("__list__", tuple(cache_key(v) for v in value))
    if isinstance(value, set):
        return ("__set__", frozenset(cache_key(v) for v in value))
    # 1, 1.0 and True stay distinct keys.
    return (type(value).__name__, value)


class LookupEngine:
    """
    Resolves target field values for lookup keys.

    For each key the configured search fields are tried in order until one
    yields a usable match; the configured mapping rules then copy fields of
    the matched document into the result. Every miss resolves to the rule's
    default value (or None), so lookups never fail a record.
    """

    def __init__(
        self,
        config: LookupConfig,
        search_client: SearchClient,
        stage_name: str | None = None
    ):
        self.config = config
        self.search_client = search_client
        self.stage_name = stage_name

    def _warn(self, warnings: WarningSink, message: str, kind: WarningKind) -> None:
        warnings.add(message, kind=kind, stage=self.stage_name)

    async def lookup_one(
        self,
        key: Any,
        record: dict[str, Any],
        lookup_context: LookupContext,
        warnings: WarningSink,
    ) -> dict[str, Any]:
        """
        Look up one key value.

        Args:
            key: Lookup key value; None means no lookup
            record: Data default value patterns are rendered against
            lookup_context: Per-invocation cache and failure state
            warnings: Sink for data warnings

        Returns:
            Mapping of target field -> value. Values may be None, meaning
            the target field is to be cleared.
        """
        if key is None:
            return {}

        ck = cache_key(key)
        if ck in lookup_context.cache:
            return lookup_context.cache[ck]

        result: dict[str, Any] = {}
        found = False
        for search_field in self.config.search_fields:
            try:
                hits = await self.search_client.query(
                    self.config.index_name,
                    self.config.index_type,
                    search_field,
                    key,
                    self.config.requested_fields,
                )
            except BackendQueryError as e:
                self._backend_failed(e, lookup_context, warnings)
                continue
            lookup_context.backend_failure_warned = False

            hit = self._select_hit(key, search_field, hits, warnings)
            if hit is None:
                continue

            self._apply_mapping(hit, key, search_field, record, result, warnings)
            found = True
            break

        if not found:
            self._apply_defaults(key, record, result)

        lookup_context.cache[ck] = result
        return result

    def _select_hit(
        self,
        key: Any,
        search_field: str,
        hits: list[SearchHit],
        warnings: WarningSink,
    ) -> SearchHit | None:
        """Pick the usable hit of one search, or None to fall back."""
        if not hits:
            self._warn(
                warnings,
                f"No result found during lookup for value '{key}' using index field '{search_field}'.",
                WarningKind.NO_RESULT,
            )
            return None

        if len(hits) > 1:
            message = f"More results found during lookup for value '{key}' using index field '{search_field}'"
            if self.config.ignore_multiple_results:
                self._warn(warnings, message + ", so we ignore them.", WarningKind.AMBIGUOUS_RESULT)
                return None
            self._warn(warnings, message + ", so first one is used.", WarningKind.AMBIGUOUS_RESULT)

        return hits[0]

    def _backend_failed(
        self,
        error: BackendQueryError,
        lookup_context: LookupContext,
        warnings: WarningSink,
    ) -> None:
        # Consecutive failures are reported once; a successful query re-arms it.
        if lookup_context.backend_failure_warned:
            return
        lookup_context.backend_failure_warned = True
        cause = error.cause if error.cause is not None else error
        message = (
            f"Lookup failed due '{type(cause).__name__}: {cause}', "
            f"so default value handling is used."
        )
        self._warn(warnings, message, WarningKind.BACKEND_FAILURE)
        logger.warning(message)

    def _apply_mapping(
        self,
        hit: SearchHit,
        key: Any,
        search_field: str,
        record: dict[str, Any],
        result: dict[str, Any],
        warnings: WarningSink,
    ) -> None:
        for rule in self.config.rules:
            if isinstance(rule.result_field, WholeDocument):
                value = hit.whole_document()
                if value is None:
                    value = FIELD_ABSENT
            else:
                value = hit.field(rule.result_field.name)

            if value is FIELD_ABSENT:
                self._warn(
                    warnings,
                    f"Result found during lookup for value '{key}' using index field '{search_field}', "
                    f"but result field '{rule.result_field_name}' is not present there",
                    WarningKind.MISSING_RESULT_FIELD,
                )
                continue

            if value is None:
                value = self._default_value(rule, key, record)
            result[rule.target_field] = value

    def _apply_defaults(self, key: Any, record: dict[str, Any], result: dict[str, Any]) -> None:
        for rule in self.config.rules:
            result[rule.target_field] = self._default_value(rule, key, record)

    def _default_value(self, rule: MappingRule, key: Any, record: dict[str, Any]) -> str | None:
        if rule.default_value is None:
            return None
        return render(rule.default_value, record, original_value=key)
