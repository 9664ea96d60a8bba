"""Optional OpenTelemetry instrumentation for ledgerchat.

Call ``ledgerchat.instrument()`` once at startup to enable tracing.
Requires ``opentelemetry-api`` to be installed; exchanges run
identically without it.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "ledgerchat") -> None:
    """Enable OpenTelemetry tracing for every message exchange.

    Call once at startup, after configuring your TracerProvider.
    Requires ``opentelemetry-api``: ``pip install ledgerchat[otel]``

    Example::

        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider

        trace.set_tracer_provider(TracerProvider())

        import ledgerchat
        ledgerchat.instrument()

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install ledgerchat[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured; spans will be "
            "discarded. Set up a TracerProvider to export "
            "traces."
        )
    else:
        logger.info("ledgerchat instrumentation enabled")


def uninstrument() -> None:
    """Disable OpenTelemetry tracing."""
    global _tracer
    _tracer = None


@asynccontextmanager
async def exchange_span(conversation_id: str, provider: str, model: str):
    """Wrap one message exchange in a ``chat`` span."""
    if _tracer is None:
        yield None
        return
    from opentelemetry.trace import SpanKind

    with _tracer.start_as_current_span(
        f"chat {model}",
        kind=SpanKind.CLIENT,
        attributes={
            "gen_ai.operation.name": "chat",
            "gen_ai.provider.name": provider,
            "gen_ai.request.model": model,
            "gen_ai.conversation.id": conversation_id,
        },
    ) as span:
        yield span


def record_transcript(span, state) -> None:
    """Set the final transcript shape on a span."""
    if span is None:
        return
    span.set_attribute("ledgerchat.status", state.status.value)
    span.set_attribute("ledgerchat.steps", len(state.steps))
    span.set_attribute("ledgerchat.tool_calls", len(state.tool_calls))
    span.set_attribute(
        "ledgerchat.output_chars", len(state.cumulative_text)
    )


def record_error(span, exception: BaseException) -> None:
    """Record an exception and set ERROR status on a span.

    Sets ``error.type`` per GenAI semantic conventions.
    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    span.record_exception(exception)
    span.set_attribute(
        "error.type", type(exception).__qualname__
    )
