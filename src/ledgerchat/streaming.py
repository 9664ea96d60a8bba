"""Reassembly of tool calls streamed in fragments.

OpenAI-compatible providers send a tool call's id and name once and its
JSON arguments spread across many chunks.  :class:`ToolCallAccumulator`
collects the pieces per call index until the turn ends.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass
class ToolCallFragment:
    """A fragment of a tool call from a streaming chunk."""

    index: int
    call_id: str | None = None
    name: str | None = None
    arguments_delta: str | None = None


@dataclass
class ToolCall:
    """A fully streamed tool call."""

    id: str = ""
    name: str = ""
    arguments: str = ""

    def parsed_arguments(self) -> Any:
        """Decoded JSON arguments; an empty string means no arguments.

        Raises:
            json.JSONDecodeError: If the model produced invalid JSON.
        """
        if not self.arguments.strip():
            return {}
        return json.loads(self.arguments)

    def to_openai(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class ToolCallAccumulator:
    """Assembles complete tool calls from streaming fragments."""

    def __init__(self) -> None:
        self._pending: dict[int, ToolCall] = {}

    def feed(self, fragment: ToolCallFragment) -> None:
        if fragment.index not in self._pending:
            self._pending[fragment.index] = ToolCall()
        tc = self._pending[fragment.index]
        if fragment.call_id is not None:
            tc.id = fragment.call_id
        if fragment.name is not None:
            tc.name = fragment.name
        if fragment.arguments_delta is not None:
            tc.arguments += fragment.arguments_delta

    def finalize(self) -> list[ToolCall]:
        """Return completed tool calls in index order."""
        return [self._pending[i] for i in sorted(self._pending)]
