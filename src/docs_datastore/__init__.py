"""Search index persistence and retrieval for versioned documentation."""

from docs_datastore.config import IndexSettings
from docs_datastore.domain.search import HighlightMark, HighlightResult, SearchHit
from docs_datastore.search.cache import IndexCache
from docs_datastore.search.indexer import DocumentIndex, IndexNotReadyError
from docs_datastore.search.sections import InvalidInputError
from docs_datastore.search.service import SearchService


__all__ = [
    "DocumentIndex",
    "HighlightMark",
    "HighlightResult",
    "IndexCache",
    "IndexNotReadyError",
    "IndexSettings",
    "InvalidInputError",
    "SearchHit",
    "SearchService",
]
