"""Span helpers around index builds, artifact I/O and queries."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer


logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "docs_datastore"

_state: dict[str, Tracer] = {}


def init_tracing(
    service_name: str = "docs-datastore",
    resource_attributes: Mapping[str, str] | None = None,
) -> TracerProvider:
    """Install an SDK tracer provider; exporters and span processors are left to the host application."""
    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)
    _state["tracer"] = provider.get_tracer(INSTRUMENTATION_NAME)
    logger.info("Tracing enabled for %s", service_name)
    return provider


def get_tracer() -> Tracer:
    tracer = _state.get("tracer")
    if tracer is None:
        # proxy tracer; stays a no-op until a provider is installed
        tracer = _state["tracer"] = trace.get_tracer(INSTRUMENTATION_NAME)
    return tracer


def current_trace_ids() -> dict[str, str]:
    """Hex ids of the active span, or empty strings outside of any span."""
    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid:
        return {"trace_id": "", "span_id": ""}
    return {"trace_id": format(ctx.trace_id, "032x"), "span_id": format(ctx.span_id, "016x")}


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Mapping[str, Any] | None = None,
) -> Iterator[Span]:
    """Run the block inside a current span named ``name``; an escaping exception marks it failed."""
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=dict(attributes or {}),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"))
            raise
