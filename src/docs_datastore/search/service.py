"""Query entry point backed by the shared index cache."""

from __future__ import annotations

import asyncio
from contextlib import suppress
import logging
import os

from docs_datastore.config import IndexSettings
from docs_datastore.domain.search import SearchHit
from docs_datastore.observability.metrics import SEARCH_LATENCY, track_latency
from docs_datastore.observability.tracing import create_span
from docs_datastore.search.cache import IndexCache
from docs_datastore.search.engine import run_query


logger = logging.getLogger(__name__)


class SearchService:
    """Search persisted indexes, loading each file at most once per change.

    A missing or invalid index yields an empty result list. After every query
    a cache sweep is started in the background; it does not delay the query
    result, so one more query may still be answered from a file that was just
    deleted.
    """

    def __init__(self, cache: IndexCache | None = None, settings: IndexSettings | None = None) -> None:
        self.cache = cache if cache is not None else IndexCache()
        self.settings = settings if settings is not None else IndexSettings()
        self._revalidation_tasks: set[asyncio.Task[list[str]]] = set()

    async def search(self, index_path: str | os.PathLike[str], term: str, limit: int | None = None) -> list[SearchHit]:
        path = os.fspath(index_path)
        effective_limit = self.settings.default_limit if limit is None else max(limit, 0)

        attributes = {"search.index_path": path, "search.limit": effective_limit}
        with create_span("search.query", attributes=attributes) as span, track_latency(SEARCH_LATENCY, path=path):
            entry = await self.cache.ensure(path)
            if entry is None:
                logger.debug("No search index available at %s", path)
                hits: list[SearchHit] = []
            else:
                hits = run_query(entry.artifact, term, effective_limit)
            span.set_attribute("search.hits", len(hits))

        self._schedule_revalidation()
        logger.debug("Query %r on %s returned %d hits", term, path, len(hits))
        return hits

    def clear_cache(self) -> None:
        self.cache.clear()

    async def revalidate(self) -> list[str]:
        """Evict cached indexes whose file has been removed."""
        return await self.cache.revalidate()

    async def wait_for_revalidation(self) -> None:
        """Wait for background sweeps started by earlier queries."""
        if self._revalidation_tasks:
            await asyncio.gather(*list(self._revalidation_tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._revalidation_tasks):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    def _schedule_revalidation(self) -> None:
        task = asyncio.create_task(self.cache.revalidate())
        self._revalidation_tasks.add(task)
        task.add_done_callback(self._on_revalidation_done)

    def _on_revalidation_done(self, task: asyncio.Task[list[str]]) -> None:
        self._revalidation_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Search index revalidation failed: %s", exc)
