"""Transport boundary: how an exchange reaches the remote service."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

import httpx

from ledgerchat.config import Settings
from ledgerchat.errors import ExchangeCancelled, TransportError
from ledgerchat.sse import SSEDecoder

if TYPE_CHECKING:
    from ledgerchat.events import StreamEvent
    from ledgerchat.options import ExchangeOptions

logger = logging.getLogger(__name__)

OnEvent = Callable[["StreamEvent"], None]


class CancelToken:
    """Identifies one exchange and carries its cancellation flag.

    Transports poll :attr:`cancelled` (or call :meth:`raise_if_cancelled`)
    between events; the controller compares tokens by identity to
    discard events from superseded exchanges.
    """

    def __init__(self, generation: int):
        self.generation = generation
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ExchangeCancelled(f"exchange {self.generation} was cancelled")

    def __repr__(self) -> str:
        return f"CancelToken(generation={self.generation}, cancelled={self._cancelled})"


class Transport(Protocol):
    """Opens one exchange and reports its events in order.

    Implementations call ``on_event`` once per event, return when the
    exchange ends, raise :class:`~ledgerchat.errors.ExchangeCancelled`
    once they notice ``cancel_token`` was cancelled, and raise any other
    exception on failure.  They never touch transcript state.
    """

    async def start_exchange(
        self,
        conversation_id: str,
        content: str,
        options: ExchangeOptions,
        cancel_token: CancelToken,
        on_event: OnEvent,
    ) -> None:
        ...


class HttpChatTransport:
    """Streams an exchange from the finance API over Server-Sent Events.

    Args:
        settings: Base URL, bearer token and timeout.
        client: Optional pre-built ``httpx.AsyncClient``; the transport
            does not close clients it did not create.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or Settings()
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "text/event-stream"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        return headers

    def _url(self, conversation_id: str) -> str:
        base = self.settings.api_base_url.rstrip("/")
        return f"{base}/api/chat/conversations/{conversation_id}/messages"

    async def start_exchange(
        self,
        conversation_id: str,
        content: str,
        options: ExchangeOptions,
        cancel_token: CancelToken,
        on_event: OnEvent,
    ) -> None:
        if self._client is not None:
            await self._stream(self._client, conversation_id, content, options, cancel_token, on_event)
            return
        async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
            await self._stream(client, conversation_id, content, options, cancel_token, on_event)

    async def _stream(self, client, conversation_id, content, options, cancel_token, on_event):
        decoder = SSEDecoder()
        try:
            async with client.stream(
                "POST",
                self._url(conversation_id),
                json=options.request_body(content),
                headers=self._headers(),
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise TransportError(
                        _error_message(response), status_code=response.status_code,
                    )
                async for line in response.aiter_lines():
                    cancel_token.raise_if_cancelled()
                    event = decoder.feed(line)
                    if event is not None:
                        on_event(event)
                cancel_token.raise_if_cancelled()
                event = decoder.feed("")
                if event is not None:
                    on_event(event)
        except httpx.HTTPError as e:
            raise TransportError(f"Connection to chat service failed: {e}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Chat service returned HTTP {response.status_code}"
