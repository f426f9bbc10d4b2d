"""Persist the term index and its section registry as one JSON artifact.

The artifact layout is::

    {
        "index": <TermIndex.to_dict()>,
        "docs": {url: {"title": ..., "nodes": [...], "url": ...}}
    }

Writes go to a temporary sibling file that then replaces the target, so a
reader never observes a half-written artifact. Loading never raises: a
missing, unreadable or malformed artifact is reported as ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any

import anyio
import orjson

from docs_datastore.search.models import Section
from docs_datastore.search.term_index import StorageError, TermIndex


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fingerprint:
    """Modification time (ns) and byte size of an artifact on disk."""

    mtime_ns: int
    size: int


@dataclass
class IndexArtifact:
    docs: dict[str, Section]
    index: TermIndex

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index.to_dict(),
            "docs": {url: section.to_dict() for url, section in self.docs.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> IndexArtifact:
        if not isinstance(data, Mapping):
            raise StorageError("Index artifact must be a JSON object")
        raw_docs = data.get("docs")
        raw_index = data.get("index")
        if not isinstance(raw_docs, Mapping) or not raw_index:
            raise StorageError("Index artifact is missing 'docs' or 'index'")
        docs: dict[str, Section] = {}
        for url, entry in raw_docs.items():
            if not isinstance(entry, Mapping):
                raise StorageError(f"Section entry for {url!r} must be an object")
            if not isinstance(entry.get("nodes") or [], list):
                raise StorageError(f"Section nodes for {url!r} must be a list")
            section = Section.from_dict(entry)
            docs[str(url)] = Section(url=section.url or str(url), title=section.title, nodes=section.nodes)
        return cls(docs=docs, index=TermIndex.from_dict(raw_index))


async def save_artifact(path: str | os.PathLike[str], artifact: IndexArtifact) -> Path:
    """Write ``artifact`` to ``path``, creating parent directories and replacing any existing file."""

    target = Path(path)
    payload = orjson.dumps(artifact.to_dict())
    tmp_path = target.with_name(target.name + ".tmp")

    await anyio.Path(target.parent).mkdir(parents=True, exist_ok=True)
    async with await anyio.open_file(tmp_path, "wb") as fp:
        await fp.write(payload)
    await anyio.to_thread.run_sync(os.replace, tmp_path, target)

    logger.debug("Saved search index %s (%d bytes, %d sections)", target, len(payload), len(artifact.docs))
    return target


async def load_artifact(path: str | os.PathLike[str]) -> IndexArtifact | None:
    """Read an artifact; ``None`` when it is absent, unreadable or malformed."""

    try:
        async with await anyio.open_file(path, "rb") as fp:
            raw = await fp.read()
    except FileNotFoundError:
        logger.debug("Search index %s does not exist", path)
        return None
    except OSError as err:
        logger.debug("Failed to read search index %s: %s", path, err)
        return None

    try:
        return IndexArtifact.from_dict(orjson.loads(raw))
    except (orjson.JSONDecodeError, StorageError) as err:
        logger.debug("Ignoring invalid search index %s: %s", path, err)
        return None


async def stat_fingerprint(path: str | os.PathLike[str]) -> Fingerprint | None:
    """Return the file's fingerprint, or ``None`` when it cannot be stat'ed."""

    try:
        stats = await anyio.Path(path).stat()
    except OSError:
        return None
    return Fingerprint(mtime_ns=stats.st_mtime_ns, size=stats.st_size)
