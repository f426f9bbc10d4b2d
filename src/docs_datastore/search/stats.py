"""BM25 scoring helpers for the term index.

Everything here works on plain counts, so the formulas can be tested without
building an index.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import math


K1 = 1.2
B = 0.75


@dataclass(frozen=True)
class FieldLengthStats:
    field: str
    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        return self.total_terms / self.document_count if self.document_count else 0.0


def compute_field_length_stats(field: str, lengths: Mapping[str, int]) -> FieldLengthStats:
    counted = [max(length, 0) for length in lengths.values()]
    return FieldLengthStats(field=field, total_terms=sum(counted), document_count=len(counted))


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Smoothed inverse document frequency, ``log(1 + |(N - df + 0.5) / (df + 0.5)|)``; never negative."""

    if total_docs < 1:
        return 0.0
    df = min(max(doc_freq, 0), total_docs)
    return math.log1p(abs((total_docs - df + 0.5) / (df + 0.5)))


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = K1, b: float = B) -> float:
    """Term frequency weight of one entry, without the IDF factor."""

    if tf < 1:
        return 0.0
    length_ratio = doc_length / avg_doc_length if avg_doc_length > 0 else 1.0
    return tf * (k1 + 1) / (tf + k1 * (1 - b + b * length_ratio))
