import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from ledgerchat.config import Settings
from ledgerchat.controller import ExchangeController
from ledgerchat.events import StreamEvent
from ledgerchat.options import ExchangeOptions
from ledgerchat.transport import CancelToken


# ---------------------------------------------------------------------------
# Scripted transport: the test drives every event and the settlement
# ---------------------------------------------------------------------------

@dataclass
class PendingExchange:
    """One call to ``start_exchange`` held open until the test settles it."""

    conversation_id: str
    content: str
    options: ExchangeOptions
    cancel_token: CancelToken
    on_event: Any
    settled: asyncio.Future

    def emit(self, *events: StreamEvent) -> None:
        for event in events:
            self.on_event(event)

    def finish(self) -> None:
        if not self.settled.done():
            self.settled.set_result(None)

    def fail(self, exc: BaseException) -> None:
        if not self.settled.done():
            self.settled.set_exception(exc)


class ScriptedTransport:
    """Transport that records calls and never settles on its own. No I/O."""

    def __init__(self):
        self.calls: list[PendingExchange] = []

    async def start_exchange(
        self, conversation_id, content, options, cancel_token, on_event,
    ):
        pending = PendingExchange(
            conversation_id=conversation_id,
            content=content,
            options=options,
            cancel_token=cancel_token,
            on_event=on_event,
            settled=asyncio.get_running_loop().create_future(),
        )
        self.calls.append(pending)
        await pending.settled

    async def started(self, count: int = 1) -> PendingExchange:
        """Yield to the loop until *count* exchanges have started."""
        for _ in range(20):
            if len(self.calls) >= count:
                return self.calls[count - 1]
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} exchanges, saw {len(self.calls)}")

    def settle_all(self) -> None:
        for pending in self.calls:
            pending.finish()


# ---------------------------------------------------------------------------
# Replay transport: emits a fixed event list, then returns or raises
# ---------------------------------------------------------------------------

@dataclass
class ReplayTransport:
    events: list[StreamEvent] = field(default_factory=list)
    raises: BaseException | None = None
    call_log: list[dict] = field(default_factory=list)

    async def start_exchange(
        self, conversation_id, content, options, cancel_token, on_event,
    ):
        self.call_log.append({
            "conversation_id": conversation_id,
            "content": content,
            "options": options,
        })
        for event in self.events:
            on_event(event)
        if self.raises is not None:
            raise self.raises


@pytest.fixture
def options():
    return ExchangeOptions(provider="openai", model="mock-model")


@pytest.fixture
def settings():
    return Settings(api_base_url="http://finance.test", api_token="tok")


@pytest.fixture
def scripted():
    return ScriptedTransport()


@pytest.fixture
def make_controller(settings):
    """Factory fixture building controllers around a given transport."""
    def _make(transport, conversation_id="conv_1", on_complete=None):
        return ExchangeController(
            transport,
            conversation_id=conversation_id,
            on_complete=on_complete,
            settings=settings,
        )
    return _make
