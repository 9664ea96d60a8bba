"""Streaming transcript aggregator for the finance assistant chat."""

from ledgerchat.controller import ExchangeController
from ledgerchat.errors import ExchangeCancelled, ExchangeError, TransportError
from ledgerchat.events import (
    DoneEvent,
    ErrorEvent,
    ReasoningDeltaEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolCallStartEvent,
    ToolResultEvent,
)
from ledgerchat.instrumentation import instrument, uninstrument
from ledgerchat.options import ExchangeOptions, ThinkingConfig
from ledgerchat.processor import apply
from ledgerchat.transcript import (
    ReasoningStep,
    TextStep,
    ToolCallRecord,
    ToolCallStep,
    TranscriptState,
    TranscriptStatus,
)
from ledgerchat.transport import CancelToken, HttpChatTransport, Transport

__all__ = [
    "CancelToken",
    "DoneEvent",
    "ErrorEvent",
    "ExchangeCancelled",
    "ExchangeController",
    "ExchangeError",
    "ExchangeOptions",
    "HttpChatTransport",
    "ReasoningDeltaEvent",
    "ReasoningStep",
    "StreamEvent",
    "TextDeltaEvent",
    "TextStep",
    "ThinkingConfig",
    "ToolCallRecord",
    "ToolCallStartEvent",
    "ToolCallStep",
    "ToolResultEvent",
    "Transport",
    "TranscriptState",
    "TranscriptStatus",
    "TransportError",
    "apply",
    "instrument",
    "uninstrument",
]
