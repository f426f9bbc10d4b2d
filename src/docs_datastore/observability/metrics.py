"""Prometheus metrics for index builds, cache behaviour and query latency."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_LATENCY = Histogram(
    "docs_index_search_latency_seconds",
    "Search query latency",
    ["path"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

INDEX_BUILD_LATENCY = Histogram(
    "docs_index_build_latency_seconds",
    "Time spent building a term index from the section registry",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

INDEX_CACHE_EVENTS = Counter(
    "docs_index_cache_events_total",
    "Index cache lookups and state changes",
    ["event"],
)

INDEX_ENTRY_COUNT = Gauge(
    "docs_index_entry_count",
    "Entries registered in the most recently built index",
    ["path"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
