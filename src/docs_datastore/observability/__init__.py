"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from docs_datastore.observability.logging import JsonFormatter, configure_logging, configure_logging_from_settings
from docs_datastore.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_CACHE_EVENTS,
    INDEX_ENTRY_COUNT,
    SEARCH_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from docs_datastore.observability.tracing import create_span, current_trace_ids, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_CACHE_EVENTS",
    "INDEX_ENTRY_COUNT",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "configure_logging",
    "configure_logging_from_settings",
    "create_span",
    "current_trace_ids",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_tracing",
    "track_latency",
]
