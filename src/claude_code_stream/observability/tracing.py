"""Tracer and span helpers.

Uses the OpenTelemetry API only; spans are no-ops until the host
application installs an SDK tracer provider.
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

TRACER_NAME = "claude_code_stream"


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    """Return the OTel tracer used by the SDK."""
    return trace.get_tracer(name)


def start_span(name: str, attributes: dict[str, Any] | None = None) -> Span:
    """Start a span that the caller ends explicitly.

    Query streams outlive any single ``with`` block, so they hold the span
    open and close it with :func:`end_span`.
    """
    return get_tracer().start_span(name, attributes=attributes)


def end_span(span: Span, error: BaseException | None = None) -> None:
    """Record *error* (if any) on *span* and end it."""
    if error is not None:
        span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, str(error)))
    span.end()
