"""OpenTelemetry-based observability for the SDK."""

from claude_code_stream.observability.tracing import end_span, get_tracer, start_span

__all__ = [
    "end_span",
    "get_tracer",
    "start_span",
]
