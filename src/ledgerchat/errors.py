class ExchangeError(Exception):
    """Base class for failures raised while running a message exchange."""


class ExchangeCancelled(ExchangeError):
    """Raised by a transport when it observes a cancelled token.

    The controller treats this as an intentional stop, never as an
    error the user should see.
    """


class TransportError(ExchangeError):
    """The transport could not deliver the exchange.

    Args:
        message: Human-readable reason, surfaced as the transcript's
            error message.
        status_code: HTTP status of the failed request, when there was
            one.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
