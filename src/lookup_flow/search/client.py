"""Search backend client - match queries against one field of an index."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field as dataclass_field
from typing import Any

import httpx

from ..core.errors import BackendQueryError
from ..core.paths import extract_value, has_path

logger = logging.getLogger(__name__)


class _Absent:
    """Marker for a result field the hit does not carry at all."""

    _instance: "_Absent | None" = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "FIELD_ABSENT"


FIELD_ABSENT = _Absent()


@dataclass
class SearchHit:
    """One matching document."""
    id: str | None = None
    source: dict[str, Any] | None = None
    fields: dict[str, Any] = dataclass_field(default_factory=dict)

    def field(self, name: str) -> Any:
        """
        Get a named field value.

        Returns FIELD_ABSENT if the hit carries no such field; a field which
        is present with a null value returns None. Values from the hit's
        "fields" section come as arrays, single values are unwrapped.
        """
        if name in self.fields:
            value = self.fields[name]
            if isinstance(value, list):
                if not value:
                    return None
                return value[0] if len(value) == 1 else value
            return value
        if self.source is not None and has_path(self.source, name):
            return extract_value(self.source, name)
        return FIELD_ABSENT

    def whole_document(self) -> dict[str, Any] | None:
        """Get the full document body, if the backend returned it."""
        return self.source


class SearchClient(ABC):
    """Executes match queries against the search backend."""

    @abstractmethod
    async def query(
        self,
        index: str,
        doc_type: str | None,
        search_field: str,
        value: Any,
        requested_fields: list[str],
    ) -> list[SearchHit]:
        """
        Find documents whose search_field matches value.

        Raises:
            BackendQueryError: On transport or query failure
        """
        pass

    async def aclose(self) -> None:
        """Release backend resources."""
        pass


def parse_hits(data: Any) -> list[SearchHit] | None:
    """
    Read the hits of a _search response body.

    Returns None if the body does not have the {"hits": {"hits": [...]}}
    shape or a hit is not an object.
    """
    if not isinstance(data, dict) or not isinstance(data.get("hits"), dict):
        return None
    raw_hits = data["hits"].get("hits")
    if not isinstance(raw_hits, list):
        return None

    hits = []
    for hit in raw_hits:
        if not isinstance(hit, dict):
            return None
        source = hit.get("_source")
        fields = hit.get("fields")
        hits.append(SearchHit(
            id=hit.get("_id"),
            source=source if isinstance(source, dict) else None,
            fields=fields if isinstance(fields, dict) else {},
        ))
    return hits


class HttpSearchClient(SearchClient):
    """
    Search client for the Elasticsearch/OpenSearch REST _search API.

    The match query is used as a filter, so hits come back in index order
    rather than by relevance.
    """

    def __init__(
        self,
        url: str = "http://localhost:9200",
        timeout: float = 10.0,
        username: str | None = None,
        password: str | None = None,
        verify_tls: bool = True,
        use_mapping_types: bool = False,
        max_hits: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.use_mapping_types = use_mapping_types
        self.max_hits = max_hits
        auth = (username, password) if username else None
        self._client = httpx.AsyncClient(
            base_url=self.url,
            timeout=timeout,
            auth=auth,
            verify=verify_tls,
            transport=transport,
        )

    @classmethod
    def from_config(cls, search_config: dict[str, Any]) -> "HttpSearchClient":
        """Build a client from the "search" section of the configuration."""
        return cls(
            url=search_config.get("url", "http://localhost:9200"),
            timeout=search_config.get("timeout", 10.0),
            username=search_config.get("username"),
            password=search_config.get("password"),
            verify_tls=search_config.get("verify_tls", True),
            use_mapping_types=search_config.get("use_mapping_types", False),
            max_hits=search_config.get("max_hits", 10),
        )

    def _search_path(self, index: str, doc_type: str | None) -> str:
        if self.use_mapping_types and doc_type:
            return f"/{index}/{doc_type}/_search"
        return f"/{index}/_search"

    def build_query(self, search_field: str, value: Any, requested_fields: list[str]) -> dict[str, Any]:
        """Build the request body for one lookup."""
        body: dict[str, Any] = {
            "query": {"bool": {"filter": [{"match": {search_field: value}}]}},
            "_source": True,
            "size": self.max_hits,
        }
        if requested_fields:
            body["fields"] = list(requested_fields)
        return body

    async def query(
        self,
        index: str,
        doc_type: str | None,
        search_field: str,
        value: Any,
        requested_fields: list[str],
    ) -> list[SearchHit]:
        path = self._search_path(index, doc_type)
        body = self.build_query(search_field, value, requested_fields)

        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as e:
            raise BackendQueryError(
                f"Search request to {self.url}{path} failed: {type(e).__name__}: {e}",
                index=index,
                search_field=search_field,
                cause=e
            ) from e

        if response.status_code >= 400:
            raise BackendQueryError(
                f"Search backend error ({response.status_code}): {response.text}",
                index=index,
                search_field=search_field
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendQueryError(
                f"Search backend returned invalid JSON: {e}",
                index=index,
                search_field=search_field,
                cause=e
            ) from e

        hits = parse_hits(data)
        if hits is None:
            raise BackendQueryError(
                f"Search backend returned an unexpected response: {str(data)[:200]}",
                index=index,
                search_field=search_field
            )
        logger.debug(f"Search {path} {search_field}={value!r}: {len(hits)} hit(s)")
        return hits

    async def aclose(self) -> None:
        await self._client.aclose()
