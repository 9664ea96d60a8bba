import asyncio
import logging
from collections.abc import Callable

from ledgerchat.config import Settings
from ledgerchat.errors import ExchangeCancelled
from ledgerchat.events import DoneEvent, StreamEvent
from ledgerchat.instrumentation import exchange_span, record_error, record_transcript
from ledgerchat.options import ExchangeOptions
from ledgerchat.processor import apply
from ledgerchat.transcript import TranscriptState, TranscriptStatus
from ledgerchat.transport import CancelToken, Transport

logger = logging.getLogger(__name__)

Listener = Callable[[TranscriptState], None]


class ExchangeController:
    """Runs at most one message exchange and aggregates its events.

    The controller owns the current :class:`TranscriptState` and
    replaces it on every event; readers get immutable snapshots through
    :attr:`state` or :meth:`subscribe`.  Starting a new exchange
    cancels the previous one, and events that still arrive for it are
    dropped.

    Args:
        transport: Adapter that opens exchanges and delivers events.
        conversation_id: Default conversation targeted by ``send()``.
        on_complete: Called with the conversation id when an exchange
            finishes normally, so the stored transcript can be refreshed.
        settings: Supplies the fallback error message and, when
            ``conversation_id`` is omitted, the default conversation.
    """

    def __init__(
        self,
        transport: Transport,
        conversation_id: str | None = None,
        on_complete: Callable[[str], None] | None = None,
        settings: Settings | None = None,
    ):
        self.transport = transport
        self.settings = settings or Settings()
        self.conversation_id = conversation_id or self.settings.conversation_id
        self.on_complete = on_complete

        self._state = TranscriptState()
        self._token: CancelToken | None = None
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._listeners: list[Listener] = []

    @property
    def state(self) -> TranscriptState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def send(self, content: str, options: ExchangeOptions) -> asyncio.Task | None:
        """Start a new exchange and return the task running it.

        Must be called from a running event loop.  Returns ``None``
        without doing anything when no conversation can be resolved.
        """
        conversation_id = options.conversation_id or self.conversation_id
        if not conversation_id:
            logger.warning("send() called without a conversation id; ignoring")
            return None

        self.cancel()

        self._generation += 1
        token = CancelToken(self._generation)
        self._token = token
        self._publish(TranscriptState(status=TranscriptStatus.STREAMING))

        logger.debug(
            f"Starting exchange {token.generation} for {conversation_id} "
            f"({options.provider}/{options.model})"
        )
        self._task = asyncio.create_task(
            self._run(token, conversation_id, content, options)
        )
        return self._task

    def cancel(self) -> None:
        """Stop the current exchange. Safe to call at any time.

        The running transport call is cancelled as well, so an idle
        connection is torn down without waiting for its next event.
        """
        token, self._token = self._token, None
        if token is not None:
            token.cancel()
            logger.debug(f"Cancelled exchange {token.generation}")
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._state.status is TranscriptStatus.STREAMING:
            self._publish(
                self._state.model_copy(update={"status": TranscriptStatus.CANCELLED})
            )

    def reset(self) -> None:
        """Cancel any exchange and return to an empty idle transcript."""
        self.cancel()
        self._publish(TranscriptState())

    async def wait(self) -> None:
        """Wait until the most recently started exchange settles."""
        if self._task is not None:
            await asyncio.wait([self._task])

    # ------------------------------------------------------------------
    # Exchange plumbing
    # ------------------------------------------------------------------

    def _is_current(self, token: CancelToken) -> bool:
        return token is self._token and not token.cancelled

    async def _run(
        self,
        token: CancelToken,
        conversation_id: str,
        content: str,
        options: ExchangeOptions,
    ) -> None:
        def on_event(event: StreamEvent) -> None:
            self._handle_event(token, conversation_id, event)

        async with exchange_span(conversation_id, options.provider, options.model) as span:
            try:
                await self.transport.start_exchange(
                    conversation_id, content, options, token, on_event,
                )
            except ExchangeCancelled:
                logger.debug(f"Exchange {token.generation} stopped after cancellation")
                return
            except asyncio.CancelledError:
                if not token.cancelled:
                    raise
                logger.debug(f"Exchange {token.generation} aborted after cancellation")
                return
            except Exception as e:
                if not self._is_current(token):
                    logger.debug(
                        f"Ignoring failure of superseded exchange {token.generation}: {e}"
                    )
                    return
                if not self._state.is_streaming:
                    logger.warning(
                        f"Exchange {token.generation} failed after reaching "
                        f"{self._state.status.value}: {e}"
                    )
                    record_error(span, e)
                    return
                logger.error(f"Exchange {token.generation} failed: {e}")
                record_error(span, e)
                self._fail(str(e))
                record_transcript(span, self._state)
                return

            if not self._is_current(token):
                return
            if self._state.is_streaming:
                logger.warning(
                    f"Exchange {token.generation} ended without a done or error event"
                )
            record_transcript(span, self._state)

    def _handle_event(
        self, token: CancelToken, conversation_id: str, event: StreamEvent,
    ) -> None:
        if not self._is_current(token):
            logger.debug(
                f"Dropping {type(event).__name__} from stale exchange {token.generation}"
            )
            return
        if not self._state.is_streaming:
            logger.debug(
                f"Dropping {type(event).__name__} after exchange reached "
                f"{self._state.status.value}"
            )
            return

        self._publish(apply(self._state, event))

        if isinstance(event, DoneEvent):
            self._notify_complete(conversation_id)

    def _fail(self, message: str) -> None:
        self._publish(self._state.model_copy(update={
            "status": TranscriptStatus.ERRORED,
            "error_message": message or self.settings.fallback_error_message,
        }))

    def _notify_complete(self, conversation_id: str) -> None:
        if self.on_complete is None:
            return
        try:
            self.on_complete(conversation_id)
        except Exception:
            logger.exception(f"on_complete failed for conversation {conversation_id}")

    def _publish(self, state: TranscriptState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Transcript listener failed")
