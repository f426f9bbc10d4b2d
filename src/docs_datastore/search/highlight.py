"""Rebuild highlighted fragments from character-offset match positions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from docs_datastore.domain.search import HighlightMark, HighlightResult
from docs_datastore.search.term_index import DEFAULT_FIELD, TermMatch


def collect_positions(metadata: Mapping[str, Any], field: str = DEFAULT_FIELD) -> list[tuple[int, int]]:
    """Flatten ``term -> field -> position`` metadata into sorted ``(start, length)`` pairs."""

    positions: list[tuple[int, int]] = []
    for term_data in metadata.values():
        field_data = term_data.get(field) if isinstance(term_data, Mapping) else None
        if not field_data:
            continue
        for start, length in field_data.get("position") or []:
            positions.append((int(start), int(length)))
    positions.sort()
    return positions


def positions_to_marks(positions: Iterable[tuple[int, int]], text: str | None) -> list[HighlightMark]:
    """Split ``text`` into alternating raw and mark tokens.

    Joining the token texts always yields ``text`` back. Positions overlapping
    an earlier mark are clipped to the cursor and empty raw gaps are omitted.
    """

    if not text:
        return [HighlightMark(type="raw", text=text or "")]

    marks: list[HighlightMark] = []
    cursor = 0
    for start, length in positions:
        end = min(start + max(length, 0), len(text))
        start = max(start, cursor)
        if end <= start:
            continue
        if start > cursor:
            marks.append(HighlightMark(type="raw", text=text[cursor:start]))
        marks.append(HighlightMark(type="mark", text=text[start:end]))
        cursor = end

    if cursor < len(text):
        marks.append(HighlightMark(type="raw", text=text[cursor:]))
    return marks


def highlight(match: TermMatch, text: str | None, field: str = DEFAULT_FIELD) -> HighlightResult:
    positions = collect_positions(match.metadata, field)
    return HighlightResult(score=match.score, marks=positions_to_marks(positions, text))


def unmatched(text: str | None) -> HighlightResult:
    """Highlight result for a field that was part of a hit but did not match."""
    return HighlightResult(score=0.0, marks=positions_to_marks((), text))
