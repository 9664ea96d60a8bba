"""Immutable value types for a streamed assistant transcript.

Every transition of the aggregator produces a new :class:`TranscriptState`;
nothing here is mutated after construction, so a snapshot handed to a
reader never changes underneath it.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TranscriptStatus(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class TextStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    content: str


class ReasoningStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["reasoning"] = "reasoning"
    content: str


class ToolCallStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool-call"] = "tool-call"
    call_id: str
    tool_name: str
    args: Any = None


Step = Annotated[
    Union[TextStep, ReasoningStep, ToolCallStep],
    Field(discriminator="type"),
]


class ToolCallRecord(BaseModel):
    """A tool invocation and, once it arrives, its result.

    ``has_result`` tells "no result yet" apart from a tool that
    returned ``None``.
    """

    model_config = ConfigDict(frozen=True)

    call_id: str
    tool_name: str
    args: Any = None
    result: Any = None
    has_result: bool = False

    def with_result(self, result: Any) -> ToolCallRecord:
        return self.model_copy(update={"result": result, "has_result": True})


class StoredMessage(BaseModel):
    """Assistant message in the shape the finance API persists it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: Literal["assistant"] = "assistant"
    content: str
    provider: str | None = None
    model: str | None = None
    tool_calls: list[dict] | None = Field(default=None, alias="toolCalls")
    tool_results: list[dict] | None = Field(default=None, alias="toolResults")
    reasoning: list[Step] | None = None


class TranscriptState(BaseModel):
    """Everything a consumer can observe about the current exchange.

    Args:
        status: Where the exchange is in its lifecycle.
        steps: Displayable units in arrival order.
        cumulative_text: Every text delta of the exchange, concatenated.
        cumulative_reasoning: Every reasoning delta, concatenated.
        tool_calls: Tool-call registry keyed by call id.
        error_message: Set only when ``status`` is ``ERRORED``.
    """

    model_config = ConfigDict(frozen=True)

    status: TranscriptStatus = TranscriptStatus.IDLE
    steps: tuple[Step, ...] = ()
    cumulative_text: str = ""
    cumulative_reasoning: str = ""
    tool_calls: dict[str, ToolCallRecord] = Field(default_factory=dict)
    error_message: str | None = None

    @property
    def is_streaming(self) -> bool:
        return self.status is TranscriptStatus.STREAMING

    def tool_results(self) -> list[ToolCallRecord]:
        """Records whose result has arrived, in step order."""
        results = []
        for step in self.steps:
            if isinstance(step, ToolCallStep):
                record = self.tool_calls.get(step.call_id)
                if record is not None and record.has_result:
                    results.append(record)
        return results

    def to_stored_message(
        self, provider: str | None = None, model: str | None = None,
    ) -> StoredMessage:
        """Build the persisted assistant record for this transcript."""
        tool_steps = [s for s in self.steps if isinstance(s, ToolCallStep)]
        tool_calls = [
            {"toolCallId": s.call_id, "toolName": s.tool_name, "args": s.args}
            for s in tool_steps
        ]
        tool_results = [
            {"toolCallId": r.call_id, "toolName": r.tool_name, "result": r.result}
            for r in self.tool_results()
        ]
        return StoredMessage(
            content=self.cumulative_text,
            provider=provider,
            model=model,
            tool_calls=tool_calls or None,
            tool_results=tool_results or None,
            reasoning=list(self.steps) or None,
        )
