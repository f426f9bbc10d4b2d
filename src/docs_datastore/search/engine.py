"""Regroup flat entry matches into per-section search hits."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

from docs_datastore.domain.search import HighlightResult, SearchHit
from docs_datastore.search.highlight import highlight, unmatched
from docs_datastore.search.models import EntryKey, Section
from docs_datastore.search.storage import IndexArtifact
from docs_datastore.search.term_index import TermMatch


logger = logging.getLogger(__name__)


@dataclass
class _HitGroup:
    section: Section
    score: float = 0.0
    title: HighlightResult | None = None
    body: dict[int, HighlightResult] = field(default_factory=dict)

    def to_hit(self) -> SearchHit:
        return SearchHit(
            url=self.section.url,
            score=self.score,
            title=self.title or unmatched(self.section.title),
            body=[self.body[idx] for idx in sorted(self.body)],
        )


def group_matches(matches: list[TermMatch], docs: dict[str, Section], limit: int = 0) -> list[SearchHit]:
    """Nest ``url@lvl{N}`` matches under their section.

    Groups keep the order in which their url first appears in ``matches``.
    ``limit`` caps the flat matches consumed, not the number of hits.
    """

    consumed = matches[:limit] if limit > 0 else matches
    groups: dict[str, _HitGroup] = {}
    dropped = 0

    for match in consumed:
        key = EntryKey.decode(match.ref)
        if key is None:
            dropped += 1
            continue
        section = docs.get(key.url)
        text = section.text_for_level(key.level) if section is not None else None
        if section is None or text is None:
            dropped += 1
            continue

        group = groups.get(key.url)
        if group is None:
            group = groups[key.url] = _HitGroup(section=section)
        group.score = max(group.score, match.score)

        result = highlight(match, text)
        if key.is_title:
            group.title = result
        else:
            group.body[key.level - 1] = result

    if dropped:
        logger.debug("Dropped %d matches referencing sections missing from the registry", dropped)
    return [group.to_hit() for group in groups.values()]


def run_query(artifact: IndexArtifact, term: str, limit: int = 0) -> list[SearchHit]:
    """Search ``artifact`` for ``term`` and return highlighted hits."""

    if not term or not term.strip():
        return []
    matches = artifact.index.search(term)
    return group_matches(matches, artifact.docs, limit)
