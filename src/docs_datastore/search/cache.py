"""Cache of loaded index artifacts keyed by file path.

Each entry remembers the ``(mtime, size)`` fingerprint of the file it was
loaded from. ``ensure`` reloads whenever the fingerprint on disk differs and
``revalidate`` evicts entries whose file can no longer be stat'ed. A failed
reload keeps serving the last entry that loaded successfully.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
import os
import time

from docs_datastore.observability.metrics import INDEX_CACHE_EVENTS
from docs_datastore.search.models import Section
from docs_datastore.search.storage import Fingerprint, IndexArtifact, load_artifact, stat_fingerprint
from docs_datastore.search.term_index import TermIndex


logger = logging.getLogger(__name__)

ArtifactLoader = Callable[[str], Awaitable[IndexArtifact | None]]
FingerprintReader = Callable[[str], Awaitable[Fingerprint | None]]


@dataclass(frozen=True)
class CacheEntry:
    artifact: IndexArtifact
    fingerprint: Fingerprint
    loaded_at: float

    @property
    def docs(self) -> dict[str, Section]:
        return self.artifact.docs

    @property
    def index(self) -> TermIndex:
        return self.artifact.index


@dataclass
class CacheStats:
    """Lightweight counters for cache instrumentation."""

    hits: int = 0
    misses: int = 0
    loads: int = 0
    failed_loads: int = 0
    evictions: int = 0

    def record(self, event: str) -> None:
        setattr(self, event, getattr(self, event) + 1)
        INDEX_CACHE_EVENTS.labels(event=event).inc()

    def snapshot(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "loads": self.loads,
            "failed_loads": self.failed_loads,
            "evictions": self.evictions,
        }


class IndexCache:
    """Fingerprint-validated cache of ``IndexArtifact`` objects."""

    def __init__(
        self,
        loader: ArtifactLoader = load_artifact,
        fingerprint_reader: FingerprintReader = stat_fingerprint,
    ) -> None:
        self._loader = loader
        self._fingerprint_reader = fingerprint_reader
        self._entries: dict[str, CacheEntry] = {}
        self.stats = CacheStats()

    @property
    def paths(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, os.PathLike)) and os.fspath(path) in self._entries

    def get(self, path: str | os.PathLike[str]) -> CacheEntry | None:
        return self._entries.get(os.fspath(path))

    def put(self, path: str | os.PathLike[str], entry: CacheEntry) -> None:
        self._entries[os.fspath(path)] = entry

    def clear(self) -> None:
        self._entries.clear()

    async def ensure(self, path: str | os.PathLike[str]) -> CacheEntry | None:
        """Return a fresh entry for ``path``, loading it when missing or stale."""

        key = os.fspath(path)
        cached = self._entries.get(key)
        fingerprint = await self._fingerprint_reader(key)

        if cached is not None and fingerprint == cached.fingerprint:
            self.stats.record("hits")
            return cached

        self.stats.record("misses")
        if fingerprint is None:
            # file vanished or unreadable; revalidate() decides on eviction
            return cached

        artifact = await self._loader(key)
        if artifact is None:
            self.stats.record("failed_loads")
            return cached

        entry = CacheEntry(artifact=artifact, fingerprint=fingerprint, loaded_at=time.time())
        self._entries[key] = entry
        self.stats.record("loads")
        if cached is None:
            logger.debug("Loaded search index %s (%d sections)", key, len(artifact.docs))
        else:
            logger.debug(
                "Reloaded search index %s (%d sections), replacing a copy loaded %.1fs earlier",
                key,
                len(artifact.docs),
                entry.loaded_at - cached.loaded_at,
            )
        return entry

    async def revalidate_path(self, path: str | os.PathLike[str]) -> bool:
        """Evict ``path`` if its file can no longer be stat'ed; return whether it was evicted."""

        key = os.fspath(path)
        if await self._fingerprint_reader(key) is not None:
            return False
        if self._entries.pop(key, None) is None:
            return False
        self.stats.record("evictions")
        logger.debug("Evicted search index %s from cache", key)
        return True

    async def revalidate(self) -> list[str]:
        """Sweep every cached path and return the evicted ones."""

        evicted: list[str] = []
        for key in self.paths:
            if await self.revalidate_path(key):
                evicted.append(key)
        return evicted
