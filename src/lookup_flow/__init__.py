"""Record enrichment from a search index: lookup stages for document pipelines."""

__version__ = "0.1.0"
