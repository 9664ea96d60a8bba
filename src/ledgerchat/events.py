"""Events delivered by a transport during one message exchange."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StreamEvent:
    """Base for all exchange events."""


@dataclass(frozen=True)
class TextDeltaEvent(StreamEvent):
    """Fragment of the assistant's visible answer."""

    text: str = ""


@dataclass(frozen=True)
class ReasoningDeltaEvent(StreamEvent):
    """Fragment of the model's reasoning ("thinking") output."""

    text: str = ""


@dataclass(frozen=True)
class ToolCallStartEvent(StreamEvent):
    """The remote service invoked a tool."""

    call_id: str = ""
    tool_name: str = ""
    args: Any = None


@dataclass(frozen=True)
class ToolResultEvent(StreamEvent):
    """Result for a tool call announced earlier in the exchange."""

    call_id: str = ""
    result: Any = None


@dataclass(frozen=True)
class DoneEvent(StreamEvent):
    """The exchange finished normally. Always the last event."""


@dataclass(frozen=True)
class ErrorEvent(StreamEvent):
    """The remote service reported a failure. Always the last event."""

    message: str = ""
