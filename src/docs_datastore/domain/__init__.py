"""Domain layer - value objects returned to search callers.

Models here are immutable Pydantic objects with no dependency on the index,
the cache or the filesystem.
"""

from docs_datastore.domain.search import HighlightMark, HighlightResult, SearchHit


__all__ = ["HighlightMark", "HighlightResult", "SearchHit"]
