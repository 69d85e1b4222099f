"""Abstract base for API modules.

Every module owns one RequestQueue and one TokenBucket, and borrows the
client's shared worker pool, classifier and event manager. Calls are queued,
drained in FIFO order by the module's consumer task, and executed on that
consumer after it spends a rate limit token.
"""

import logging
import threading
from abc import ABC
from collections.abc import Callable
from concurrent import futures
from concurrent.futures import Future
from typing import Any

from twitchclient.concurrency.pool import WorkerPool
from twitchclient.dispatch.classifier import ErrorClassifier
from twitchclient.dispatch.queue import QueuedRequest, RequestQueue
from twitchclient.dispatch.ratelimit import TokenBucket
from twitchclient.errors import DispatchTimeoutError
from twitchclient.events.manager import EventManager
from twitchclient.modules.kinds import ModuleKind

logger = logging.getLogger(__name__)


class ApiModule(ABC):
    """Base class for REST, query and streaming modules."""

    def __init__(
        self,
        kind: ModuleKind,
        pool: WorkerPool,
        request_queue: RequestQueue,
        rate_limiter: TokenBucket,
        classifier: ErrorClassifier,
        event_manager: EventManager,
        timeout: float = 5.0,
    ):
        self.kind = kind
        self.pool = pool
        self.request_queue = request_queue
        self.rate_limiter = rate_limiter
        self.classifier = classifier
        self.event_manager = event_manager
        self.timeout = timeout
        self._stop = threading.Event()
        self._consumer: Future | None = None

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._stop.is_set()

    def start(self) -> None:
        """Start the queue consumer on the shared pool."""
        if self._consumer is not None:
            return
        self._consumer = self.pool.submit(self.request_queue.consume, self.rate_limiter, self._stop)

    def submit(self, dispatch: Callable[[], Any]) -> Future:
        """Queue ``dispatch`` without waiting.

        Raises QueueFullError when full and QueueClosedError after close.
        """
        request = QueuedRequest(dispatch=dispatch, module=self.name)
        self.request_queue.put(request)
        return request.future

    def call(self, dispatch: Callable[[], Any], timeout: float | None = None) -> Any:
        """Queue ``dispatch`` and wait for its result.

        A call still queued when the timeout fires is withdrawn, releasing
        its slot; the consumer skips it without spending a token.
        """
        timeout = self.timeout if timeout is None else timeout
        future = self.submit(dispatch)
        try:
            return future.result(timeout=timeout)
        except futures.TimeoutError:
            if future.cancel() or not future.done():
                raise DispatchTimeoutError(
                    f"{self.name} call did not complete within {timeout}s"
                ) from None
            # Finished after all, or the dispatch raised a timeout of its own
            return future.result()

    def close(self) -> None:
        """Stop the consumer and close the queue.

        Requests still queued fail with QueueClosedError; the consumer exits
        within one drain timeout.
        """
        self._stop.set()
        self.request_queue.close()
