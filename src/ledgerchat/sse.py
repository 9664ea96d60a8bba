"""Server-Sent Events decoder for the finance API's chat stream.

The API names each frame after the event it carries (``text``,
``reasoning``, ``tool-call``, ``tool-result``, ``done``, ``error``)
and puts a JSON object in ``data``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from ledgerchat.errors import TransportError
from ledgerchat.events import (
    DoneEvent,
    ErrorEvent,
    ReasoningDeltaEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolCallStartEvent,
    ToolResultEvent,
)

logger = logging.getLogger(__name__)

EVENT_NAMES = frozenset(
    {"text", "reasoning", "tool-call", "tool-result", "done", "error"}
)


def decode_event(name: str, data: str) -> StreamEvent | None:
    """Build the event for one SSE frame, or ``None`` for unknown names.

    Raises:
        TransportError: If ``data`` is not a JSON object.
    """
    if name not in EVENT_NAMES:
        logger.debug(f"Ignoring unknown SSE event {name!r}")
        return None

    try:
        payload = json.loads(data) if data else {}
    except json.JSONDecodeError as e:
        raise TransportError(f"Malformed {name!r} frame: {e}") from e
    if not isinstance(payload, dict):
        raise TransportError(f"Malformed {name!r} frame: expected a JSON object")

    if name == "text":
        return TextDeltaEvent(text=payload.get("text", ""))
    if name == "reasoning":
        return ReasoningDeltaEvent(text=payload.get("text", ""))
    if name == "tool-call":
        return ToolCallStartEvent(
            call_id=payload.get("toolCallId", ""),
            tool_name=payload.get("toolName", ""),
            args=payload.get("args"),
        )
    if name == "tool-result":
        return ToolResultEvent(
            call_id=payload.get("toolCallId", ""),
            result=payload.get("result"),
        )
    if name == "done":
        return DoneEvent()
    return ErrorEvent(message=payload.get("error") or "")


class SSEDecoder:
    """Incrementally turns SSE lines into :class:`StreamEvent` objects.

    Feed it one line at a time (without the trailing newline); a blank
    line completes a frame.
    """

    def __init__(self) -> None:
        self._event = "message"
        self._data: list[str] = []

    def feed(self, line: str) -> StreamEvent | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        return None

    def feed_all(self, lines: Iterable[str]) -> list[StreamEvent]:
        events = []
        for line in lines:
            event = self.feed(line)
            if event is not None:
                events.append(event)
        return events

    def _dispatch(self) -> StreamEvent | None:
        if not self._data and self._event == "message":
            return None
        name, data = self._event, "\n".join(self._data)
        self._event = "message"
        self._data = []
        return decode_event(name, data)
