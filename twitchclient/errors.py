"""Error taxonomy shared by the assembler, the dispatch layer and the modules."""


class TwitchClientError(Exception):
    """Base class for all errors raised by twitchclient."""


class FatalConfigurationError(TwitchClientError):
    """Assembly cannot continue; the client would not be functional."""


class AssemblyStateError(TwitchClientError):
    """A one-shot assembler was asked to build a second time."""


class UndersizedPoolWarning(RuntimeWarning):
    """A supplied worker pool is smaller than the enabled modules need."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"twitchclient requires a worker pool with at least {required} threads "
            f"to be fully functional, the supplied pool has {available}. "
            "Some features may not work as expected."
        )


class QueueFullError(TwitchClientError):
    """A bounded request queue rejected an enqueue attempt."""

    def __init__(self, queue_name: str, capacity: int):
        self.queue_name = queue_name
        self.capacity = capacity
        super().__init__(f"Request queue '{queue_name}' is full (capacity {capacity})")


class QueueClosedError(TwitchClientError):
    """The module owning the queue was closed; the request will never run."""

    def __init__(self, queue_name: str, message: str | None = None):
        self.queue_name = queue_name
        super().__init__(message or f"Request queue '{queue_name}' is closed")


class DispatchTimeoutError(TwitchClientError, TimeoutError):
    """A call did not complete within its per-call timeout."""


class TransportError(TwitchClientError):
    """The upstream could not be reached or the exchange broke off."""


class NotConnectedError(TwitchClientError):
    """A streaming module has no connection attached."""


class ApiResponseError(TwitchClientError):
    """A classified upstream response that is not a decoded payload.

    ``context`` holds the diagnostic fields ``requestUrl``, ``requestMethod``,
    ``requestHeaders`` and ``responseBody`` for the caller to log.
    """

    reason = "Unclassified upstream response"

    def __init__(self, status: int, context: dict[str, str]):
        self.status = status
        self.context = dict(context)
        super().__init__(f"{self.reason} (HTTP {status})")


class UnauthorizedError(ApiResponseError):
    reason = "Unauthorized"


class NotFoundError(ApiResponseError):
    reason = "Not found"


class RetryableUnavailableError(ApiResponseError):
    """HTTP 503. Retried once by the dispatch layer, then surfaced as terminal."""

    reason = "Service unavailable"

    def __init__(self, status: int, context: dict[str, str], terminal: bool = False):
        super().__init__(status, context)
        self.terminal = terminal


class UnclassifiedResponseError(ApiResponseError):
    """Status and raw body only; the body did not match any expected shape."""

    reason = "Unclassified upstream response"

    @property
    def raw_body(self) -> str:
        return self.context.get("responseBody", "")


class ApiError(TwitchClientError):
    """A decoded error payload returned by the upstream."""

    def __init__(self, status: int, error: str, message: str = ""):
        self.status = status
        self.error = error
        self.message = message
        detail = f"{error}: {message}" if message else error
        super().__init__(f"HTTP {status} {detail}")
