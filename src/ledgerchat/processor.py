"""Pure reducer folding exchange events into a transcript."""

import logging

from ledgerchat.events import (
    DoneEvent,
    ErrorEvent,
    ReasoningDeltaEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolCallStartEvent,
    ToolResultEvent,
)
from ledgerchat.transcript import (
    ReasoningStep,
    TextStep,
    ToolCallRecord,
    ToolCallStep,
    TranscriptState,
    TranscriptStatus,
)

logger = logging.getLogger(__name__)


def apply(state: TranscriptState, event: StreamEvent) -> TranscriptState:
    """Return the transcript that results from applying *event* to *state*.

    Consecutive text deltas merge into one :class:`TextStep` and
    consecutive reasoning deltas into one :class:`ReasoningStep`.  A tool
    call always gets its own step and closes the current run, so text
    after it starts a new step.  Neither argument is modified.

    Raises:
        TypeError: If *event* is not a known event type.
    """
    if isinstance(event, TextDeltaEvent):
        return state.model_copy(update={
            "steps": _coalesce(state.steps, TextStep, event.text),
            "cumulative_text": state.cumulative_text + event.text,
        })

    if isinstance(event, ReasoningDeltaEvent):
        return state.model_copy(update={
            "steps": _coalesce(state.steps, ReasoningStep, event.text),
            "cumulative_reasoning": state.cumulative_reasoning + event.text,
        })

    if isinstance(event, ToolCallStartEvent):
        step = ToolCallStep(
            call_id=event.call_id, tool_name=event.tool_name, args=event.args,
        )
        record = ToolCallRecord(
            call_id=event.call_id, tool_name=event.tool_name, args=event.args,
        )
        return state.model_copy(update={
            "steps": (*state.steps, step),
            "tool_calls": {**state.tool_calls, event.call_id: record},
        })

    if isinstance(event, ToolResultEvent):
        existing = state.tool_calls.get(event.call_id)
        if existing is None:
            logger.debug(f"Dropping result for unknown tool call {event.call_id!r}")
            return state
        return state.model_copy(update={
            "tool_calls": {
                **state.tool_calls,
                event.call_id: existing.with_result(event.result),
            },
        })

    if isinstance(event, DoneEvent):
        return state.model_copy(update={"status": TranscriptStatus.COMPLETED})

    if isinstance(event, ErrorEvent):
        return state.model_copy(update={
            "status": TranscriptStatus.ERRORED,
            "error_message": event.message,
        })

    raise TypeError(f"Unsupported stream event: {type(event).__name__}")


def _coalesce(steps, step_type, text):
    if steps and isinstance(steps[-1], step_type):
        merged = step_type(content=steps[-1].content + text)
        return (*steps[:-1], merged)
    return (*steps, step_type(content=text))
