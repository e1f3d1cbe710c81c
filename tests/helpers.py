"""Test helpers: an in-memory search backend and stage runners."""

from typing import Any

from lookup_flow.core import BackendQueryError, ProcessingContext
from lookup_flow.search import SearchClient, SearchHit
from lookup_flow.stages.enrich.search_lookup import SearchLookupStage


class FakeSearchClient(SearchClient):
    """
    Search client answering from a dict of (search_field, value) -> hits.

    Every query is recorded in `calls` as (index, doc_type, search_field,
    value, requested_fields).
    """

    url = "memory://search"

    def __init__(self):
        self.hits: dict[tuple[str, Any], list[SearchHit]] = {}
        self.calls: list[tuple] = []
        self.failing_fields: set[str] = set()
        self.fail_all = False
        self.closed = False

    def add(self, search_field: str, value: Any, *documents: dict[str, Any]) -> "FakeSearchClient":
        """Register documents found when search_field matches value."""
        self.hits.setdefault((search_field, value), []).extend(
            SearchHit(id=str(i), source=doc) for i, doc in enumerate(documents)
        )
        return self

    def queried_values(self) -> list[Any]:
        return [call[3] for call in self.calls]

    async def query(self, index, doc_type, search_field, value, requested_fields):
        self.calls.append((index, doc_type, search_field, value, list(requested_fields)))
        if self.fail_all or search_field in self.failing_fields:
            cause = ConnectionError("Connection refused")
            raise BackendQueryError(
                f"Search request failed: {cause}",
                index=index,
                search_field=search_field,
                cause=cause,
            )
        for (field, matched), hits in self.hits.items():
            if field == search_field and matched == value:
                return list(hits)
        return []

    async def aclose(self):
        self.closed = True


def make_lookup_stage(settings: dict[str, Any], client: SearchClient | None, name: str = "lookup") -> SearchLookupStage:
    return SearchLookupStage(name, settings, search_client=client)


async def run_stage(stage, record: dict[str, Any]) -> ProcessingContext:
    """Run one stage over a record and return its context (for warnings)."""
    context = ProcessingContext()
    context.stage_name = stage.name
    await stage.process(record, context)
    return context
