"""Build, persist and directly query the search index of one docs version."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import os
from pathlib import Path
from typing import Any

from docs_datastore.config import IndexSettings
from docs_datastore.domain.search import SearchHit
from docs_datastore.observability.metrics import INDEX_BUILD_LATENCY, INDEX_ENTRY_COUNT, track_latency
from docs_datastore.observability.tracing import create_span
from docs_datastore.search.engine import run_query
from docs_datastore.search.models import Section
from docs_datastore.search.sections import SectionExtractor
from docs_datastore.search.storage import IndexArtifact, load_artifact, save_artifact
from docs_datastore.search.term_index import TermIndex, build_term_index


logger = logging.getLogger(__name__)


class IndexNotReadyError(RuntimeError):
    """Raised when searching a ``DocumentIndex`` that has nothing built or loaded."""


class DocumentIndex:
    """Accumulates documents of a version and writes a single index artifact.

    Usage::

        index = DocumentIndex(paths.search_index_file(version))
        for doc in docs:
            index.add_doc(doc.content, doc.permalink)
        await index.save()

    The same object can serve queries without the shared cache, after
    ``load()`` (or ``build()``) succeeded.
    """

    def __init__(self, index_path: str | os.PathLike[str], settings: IndexSettings | None = None) -> None:
        self.index_path = Path(index_path)
        self.settings = settings if settings is not None else IndexSettings()
        self.extractor = SectionExtractor(self.settings)
        self.docs: dict[str, Section] = {}
        self._artifact: IndexArtifact | None = None

    @property
    def is_ready(self) -> bool:
        return self._artifact is not None

    def add_doc(self, content: Mapping[str, Any], permalink: str) -> None:
        """Add the sections of one parsed document; raises ``InvalidInputError`` on bad input."""
        self.extractor.add_doc(content, permalink, self.docs)

    def build(self) -> TermIndex:
        """Build the term index from every section added so far."""

        self._artifact = self._build_artifact()
        return self._artifact.index

    def _build_artifact(self) -> IndexArtifact:
        with create_span("search.index.build", attributes={"search.sections": len(self.docs)}):
            with track_latency(INDEX_BUILD_LATENCY):
                index = build_term_index(
                    self.docs,
                    analyzer_name=self.settings.analyzer,
                    boost=self.settings.content_boost,
                )
        INDEX_ENTRY_COUNT.labels(path=str(self.index_path)).set(index.doc_count)
        return IndexArtifact(docs=dict(self.docs), index=index)

    async def save(self) -> Path:
        """Rebuild the index and overwrite the artifact at ``index_path``."""

        artifact = self._artifact = self._build_artifact()
        with create_span("search.index.save", attributes={"search.index_path": str(self.index_path)}):
            path = await save_artifact(self.index_path, artifact)
        logger.info(
            "Wrote search index %s with %d sections and %d entries",
            path,
            len(artifact.docs),
            artifact.index.doc_count,
        )
        return path

    async def load(self) -> bool:
        """Load the artifact at ``index_path``; ``False`` when it is missing or invalid."""

        with create_span("search.index.load", attributes={"search.index_path": str(self.index_path)}):
            artifact = await load_artifact(self.index_path)
        if artifact is None:
            logger.debug("Search index %s could not be loaded", self.index_path)
            return False
        self._artifact = artifact
        self.docs = dict(artifact.docs)
        return True

    def search(self, term: str, limit: int | None = None) -> list[SearchHit]:
        if self._artifact is None:
            raise IndexNotReadyError(f"Search index {self.index_path} is not loaded; call load() first")
        effective_limit = self.settings.default_limit if limit is None else max(limit, 0)
        return run_query(self._artifact, term, effective_limit)
