"""In-memory term index with character-offset postings.

``TermIndexBuilder`` accepts ``(ref, text)`` entries and produces an immutable
``TermIndex``. Every posting keeps the ``[start, length]`` offsets of each term
occurrence inside the original field text, which is what the highlighter
uses to rebuild marked fragments. Scoring is BM25 over a single boosted field.

Queries are whitespace separated clauses:

* ``term``   optional, contributes to the score
* ``+term``  required, entries without it are dropped
* ``-term``  prohibited, entries containing it are dropped
* ``term*``  prefix match against the vocabulary
* ``term^3`` boosts the clause score
"""

from __future__ import annotations

from bisect import bisect_left
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
import logging
import re
from typing import Any

from docs_datastore.search.analyzers import PlainAnalyzer, available_analyzers, get_analyzer
from docs_datastore.search.models import EntryKey, Section
from docs_datastore.search.stats import B, K1, bm25, calculate_idf, compute_field_length_stats


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
DEFAULT_FIELD = "content"

_CLAUSE_PATTERN = re.compile(r"^(?P<presence>[+-]?)(?P<body>.*?)(?:\^(?P<boost>\d+(?:\.\d+)?))?$")

Position = tuple[int, int]
MatchMetadata = dict[str, dict[str, dict[str, list[list[int]]]]]


class StorageError(ValueError):
    """Raised when invalid entries or serialized payloads are encountered."""


class Presence(str, Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    PROHIBITED = "prohibited"


@dataclass(frozen=True)
class QueryClause:
    term: str
    presence: Presence = Presence.OPTIONAL
    boost: float = 1.0
    wildcard: bool = False


@dataclass(frozen=True)
class TermMatch:
    """A scored entry together with the positions of every matched term.

    ``metadata`` is keyed ``term -> field -> {"position": [[start, length], ...]}``.
    """

    ref: str
    score: float
    metadata: MatchMetadata = field(default_factory=dict)


def parse_query(query: str, analyzer_name: str | None = None) -> list[QueryClause]:
    """Split a query string into analyzed clauses.

    Wildcard clauses are only lowercased, so the prefix is compared against
    stemmed vocabulary terms as typed.
    """

    analyzer = get_analyzer(analyzer_name)
    plain = PlainAnalyzer()
    clauses: list[QueryClause] = []
    for raw in query.split():
        match = _CLAUSE_PATTERN.match(raw)
        if match is None:  # pragma: no cover - pattern accepts any non-space input
            continue
        presence = {"+": Presence.REQUIRED, "-": Presence.PROHIBITED}.get(match.group("presence"), Presence.OPTIONAL)
        boost = float(match.group("boost")) if match.group("boost") else 1.0
        body = match.group("body")
        if body.endswith("*"):
            clauses.extend(
                QueryClause(term=token.text, presence=presence, boost=boost, wildcard=True)
                for token in plain(body.rstrip("*"))
            )
            continue
        clauses.extend(QueryClause(term=token.text, presence=presence, boost=boost) for token in analyzer(body))
    return clauses


class TermIndex:
    """Immutable term index answering BM25 ranked queries."""

    def __init__(
        self,
        *,
        refs: Iterable[str],
        field_lengths: Mapping[str, int],
        postings: Mapping[str, Mapping[str, tuple[Position, ...]]],
        analyzer_name: str = "default",
        field_name: str = DEFAULT_FIELD,
        boost: float = 1.0,
        k1: float = K1,
        b: float = B,
    ) -> None:
        self.refs: tuple[str, ...] = tuple(refs)
        self.field_lengths = dict(field_lengths)
        self.postings = {term: dict(entries) for term, entries in postings.items()}
        self.analyzer_name = analyzer_name
        self.field_name = field_name
        self.boost = boost
        self.k1 = k1
        self.b = b
        self._ref_order = {ref: idx for idx, ref in enumerate(self.refs)}
        self._vocabulary = sorted(self.postings)
        self._stats = compute_field_length_stats(field_name, self.field_lengths)

    @property
    def doc_count(self) -> int:
        return len(self.refs)

    def search(self, query: str) -> list[TermMatch]:
        """Return matches ordered by descending score, ties in insertion order."""

        clauses = parse_query(query, self.analyzer_name)
        positive = [clause for clause in clauses if clause.presence is not Presence.PROHIBITED]
        if not positive:
            return []

        total_docs = max(self.doc_count, 1)
        avg_length = self._stats.average_length
        scores: dict[str, float] = defaultdict(float)
        metadata: dict[str, MatchMetadata] = defaultdict(dict)
        required_sets: list[set[str]] = []
        prohibited: set[str] = set()
        seen_terms: set[str] = set()

        for clause in clauses:
            matched_refs: set[str] = set()
            for term in self._expand(clause):
                entries = self.postings.get(term)
                if not entries:
                    continue
                matched_refs.update(entries)
                if clause.presence is Presence.PROHIBITED or term in seen_terms:
                    continue
                seen_terms.add(term)
                idf = calculate_idf(len(entries), total_docs)
                for ref, positions in entries.items():
                    length = self.field_lengths.get(ref, len(positions))
                    weight = bm25(len(positions), length, avg_length, k1=self.k1, b=self.b)
                    scores[ref] += idf * weight * self.boost * clause.boost
                    metadata[ref][term] = {self.field_name: {"position": [list(pos) for pos in positions]}}
            if clause.presence is Presence.REQUIRED:
                required_sets.append(matched_refs)
            elif clause.presence is Presence.PROHIBITED:
                prohibited.update(matched_refs)

        candidates = set(scores)
        for required in required_sets:
            candidates &= required
        candidates -= prohibited

        ranked = sorted(candidates, key=lambda ref: (-scores[ref], self._ref_order.get(ref, len(self.refs))))
        return [TermMatch(ref=ref, score=scores[ref], metadata=metadata[ref]) for ref in ranked]

    def _expand(self, clause: QueryClause) -> list[str]:
        if not clause.wildcard:
            return [clause.term]
        start = bisect_left(self._vocabulary, clause.term)
        expanded: list[str] = []
        for term in self._vocabulary[start:]:
            if not term.startswith(clause.term):
                break
            expanded.append(term)
        return expanded

    def to_dict(self) -> dict[str, Any]:
        """Serialize with refs stored once and postings pointing at ref indices."""
        return {
            "version": FORMAT_VERSION,
            "analyzer": self.analyzer_name,
            "field": self.field_name,
            "boost": self.boost,
            "k1": self.k1,
            "b": self.b,
            "refs": list(self.refs),
            "lengths": [self.field_lengths.get(ref, 0) for ref in self.refs],
            "postings": {
                term: [[self._ref_order[ref], [list(pos) for pos in positions]] for ref, positions in entries.items()]
                for term, entries in self.postings.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TermIndex:
        if not isinstance(data, Mapping):
            raise StorageError("Serialized index must be an object")
        version = data.get("version")
        if version != FORMAT_VERSION:
            raise StorageError(f"Unsupported index format version: {version!r}")
        analyzer_name = str(data.get("analyzer") or "default").lower()
        if analyzer_name not in available_analyzers():
            raise StorageError(f"Index was built with unknown analyzer {analyzer_name!r}")
        try:
            refs = [str(ref) for ref in data["refs"]]
            lengths = [int(length) for length in data["lengths"]]
            if len(refs) != len(lengths):
                raise StorageError("Index refs and lengths disagree")
            postings: dict[str, dict[str, tuple[Position, ...]]] = {}
            for term, entries in data["postings"].items():
                postings[term] = {
                    refs[int(ref_idx)]: tuple((int(start), int(length)) for start, length in positions)
                    for ref_idx, positions in entries
                }
            return cls(
                refs=refs,
                field_lengths=dict(zip(refs, lengths)),
                postings=postings,
                analyzer_name=analyzer_name,
                field_name=str(data.get("field") or DEFAULT_FIELD),
                boost=float(data.get("boost", 1.0)),
                k1=float(data.get("k1", K1)),
                b=float(data.get("b", B)),
            )
        except StorageError:
            raise
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            raise StorageError(f"Malformed serialized index: {exc}") from exc


class TermIndexBuilder:
    """Collects entries and builds a ``TermIndex`` once."""

    def __init__(
        self,
        *,
        analyzer_name: str = "default",
        field_name: str = DEFAULT_FIELD,
        boost: float = 1.0,
    ) -> None:
        self.analyzer_name = analyzer_name
        self.field_name = field_name
        self.boost = boost
        self._analyzer = get_analyzer(analyzer_name)
        self._refs: list[str] = []
        self._field_lengths: dict[str, int] = {}
        self._postings: dict[str, dict[str, list[Position]]] = defaultdict(dict)

    def __len__(self) -> int:
        return len(self._refs)

    def add(self, ref: str, text: str | None) -> int:
        """Analyze ``text`` under ``ref`` and return the number of tokens indexed."""

        if ref in self._field_lengths:
            raise StorageError(f"Duplicate index entry: {ref}")
        tokens = self._analyzer(text or "")
        self._refs.append(ref)
        self._field_lengths[ref] = len(tokens)
        for token in tokens:
            self._postings[token.text].setdefault(ref, []).append((token.start_char, token.length))
        return len(tokens)

    def build(self) -> TermIndex:
        return TermIndex(
            refs=self._refs,
            field_lengths=self._field_lengths,
            postings={
                term: {ref: tuple(positions) for ref, positions in entries.items()}
                for term, entries in self._postings.items()
            },
            analyzer_name=self.analyzer_name,
            field_name=self.field_name,
            boost=self.boost,
        )


def build_term_index(
    docs: Mapping[str, Section],
    *,
    analyzer_name: str = "default",
    boost: float = 2.0,
) -> TermIndex:
    """Register the title at ``url@lvl0`` and every node at ``url@lvl{i+1}``."""

    builder = TermIndexBuilder(analyzer_name=analyzer_name, field_name=DEFAULT_FIELD, boost=boost)
    for section in docs.values():
        builder.add(EntryKey(section.url, 0).encode(), section.title)
        for idx, node in enumerate(section.nodes):
            builder.add(EntryKey(section.url, idx + 1).encode(), node)
    logger.debug("Built term index with %d entries from %d sections", len(builder), len(docs))
    return builder.build()
