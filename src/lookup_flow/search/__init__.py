"""Search backend clients."""

from .client import FIELD_ABSENT, HttpSearchClient, SearchClient, SearchHit

__all__ = [
    "FIELD_ABSENT",
    "HttpSearchClient",
    "SearchClient",
    "SearchHit",
]
