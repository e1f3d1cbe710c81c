"""Search lookup stage - enrich records with fields of documents found in a search index."""

from __future__ import annotations

import copy
from typing import Any

from ...core.bases import SourceBasesStage
from ...core.context import ProcessingContext
from ...core.errors import ConfigurationError
from ...core.paths import extract_value, put_value
from ...core.patterns import render
from ...core.registry import register_stage
from ...core.stage import OptionSpec, StageManifest
from ...lookup.config import LookupConfig
from ...lookup.engine import LookupContext, LookupEngine


@register_stage("enrich/search_lookup")
class SearchLookupStage(SourceBasesStage[LookupContext]):
    """
    Look up a key taken from the record in a search index and copy fields
    of the matched document back into the record.

    Example settings, enriching every author of a document:

        {
            "index_name": "people",
            "index_type": "person",
            "source_field": "username",
            "idx_search_field": ["user_name", "email"],
            "result_mapping": [
                {"idx_result_field": "full_name", "target_field": "name",
                 "value_default": "unknown user {__original}"},
                {"idx_result_field": "_source", "target_field": "person"}
            ],
            "source_bases": ["author", "editor", "comments.author"]
        }

    When the key is a list, each element is looked up and every target field
    receives the list of non-null values, in element order.
    """

    @classmethod
    def describe(cls) -> StageManifest:
        return StageManifest(
            type="enrich/search_lookup",
            description="Look up values in a search index and map them into the record",
            category="enrich",
            requires_search_client=True,
            options={
                "index_name": OptionSpec(
                    type="string",
                    required=True,
                    description="Search index to look values up in"
                ),
                "index_type": OptionSpec(
                    type="string",
                    required=True,
                    description="Document type within the index"
                ),
                "source_field": OptionSpec(
                    type="string",
                    description="Field of the record holding the lookup key (dot notation)"
                ),
                "source_value": OptionSpec(
                    type="string",
                    description="Pattern building the lookup key from {record.fields}, instead of source_field"
                ),
                "idx_search_field": OptionSpec(
                    type="string|list",
                    required=True,
                    description="Index field(s) matched against the key, tried in order"
                ),
                "result_mapping": OptionSpec(
                    type="list",
                    required=True,
                    description="List of {idx_result_field, target_field, value_default}; "
                                "idx_result_field '_source' maps the whole document"
                ),
                "result_multiple_ignore": OptionSpec(
                    type="boolean",
                    default=False,
                    description="Ignore ambiguous results instead of using the first one"
                ),
                "source_bases": OptionSpec(
                    type="list",
                    description="Fields the lookup is repeated for; other paths are relative to them"
                ),
            }
        )

    def configure(self) -> None:
        if self.search_client is None:
            raise ConfigurationError(
                f"Search client is required for stage {self.name}",
                field_path="search_client"
            )
        super().configure()
        self.lookup_config = LookupConfig.from_settings(self.name, self.settings)
        self.engine = LookupEngine(self.lookup_config, self.search_client, stage_name=self.name)

    def create_state(self, record: dict[str, Any]) -> LookupContext:
        return LookupContext()

    def source_key(self, base: dict[str, Any]) -> Any:
        """Resolve the lookup key against a base object."""
        if self.lookup_config.source_field is not None:
            return extract_value(base, self.lookup_config.source_field)
        return render(self.lookup_config.source_value, base)

    async def process_base(
        self,
        base: dict[str, Any],
        state: LookupContext,
        context: ProcessingContext
    ) -> None:
        key = self.source_key(base)

        if isinstance(key, (list, tuple)):
            targets: dict[str, Any] = {}
            for element in key:
                values = await self.engine.lookup_one(element, base, state, context.warnings)
                for target_field, value in values.items():
                    if value is not None:
                        targets.setdefault(target_field, []).append(value)
        else:
            targets = await self.engine.lookup_one(key, base, state, context.warnings)

        # None values are written too, clearing stale data in the target.
        for target_field, value in targets.items():
            put_value(base, target_field, copy.deepcopy(value))
