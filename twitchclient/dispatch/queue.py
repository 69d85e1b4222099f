"""Bounded FIFO request queue with a single consumption path.

Producers on any thread call ``put``; exactly one consumer per queue runs
``consume``, which takes requests in submission order, spends a rate limit
token for each, and executes it. Results travel back through the request's
``concurrent.futures.Future``.
"""

import logging
import queue
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any

from twitchclient.dispatch.ratelimit import TokenBucket
from twitchclient.errors import QueueClosedError, QueueFullError
from twitchclient.logging.jsonlog import generate_request_id, request_id_var

logger = logging.getLogger(__name__)

UNBOUNDED = -1


@dataclass
class QueuedRequest:
    dispatch: Callable[[], Any]
    module: str
    enqueued_at: float = field(default_factory=time.monotonic)
    request_id: str = field(default_factory=generate_request_id)
    future: Future = field(default_factory=Future)


class RequestQueue:
    """Per-surface request buffer. ``capacity=UNBOUNDED`` never rejects.

    Capacity counts requests that still hold a slot: a request gives its slot
    back when the consumer takes it, or as soon as its future is cancelled.
    """

    def __init__(self, name: str, capacity: int = UNBOUNDED, drain_timeout: float = 1.0):
        if capacity != UNBOUNDED and capacity <= 0:
            raise ValueError(f"capacity must be positive or UNBOUNDED, got {capacity}")
        if drain_timeout <= 0:
            raise ValueError("drain_timeout must be greater than 0")
        self.name = name
        self.capacity = capacity
        self.drain_timeout = drain_timeout
        self._queue: queue.Queue[QueuedRequest] = queue.Queue()
        self._held: set[str] = set()
        self._lock = threading.Lock()
        self._closed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._held)

    def put(self, request: QueuedRequest) -> None:
        """Buffer a request. Never drops silently.

        Raises:
            QueueFullError: every slot is taken.
            QueueClosedError: the queue was closed.
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError(self.name)
            if self.capacity != UNBOUNDED and len(self._held) >= self.capacity:
                raise QueueFullError(self.name, self.capacity)
            self._held.add(request.request_id)
            self._queue.put_nowait(request)
        request.future.add_done_callback(lambda _: self._release(request))

    def get(self) -> QueuedRequest | None:
        """Next request in FIFO order, or None after ``drain_timeout`` idle."""
        try:
            request = self._queue.get(timeout=self.drain_timeout)
        except queue.Empty:
            return None
        self._release(request)
        return request

    def _release(self, request: QueuedRequest) -> None:
        with self._lock:
            self._held.discard(request.request_id)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Refuse new requests and fail every request still buffered."""
        with self._lock:
            self._closed = True
        failed = 0
        while True:
            try:
                request = self._queue.get_nowait()
            except queue.Empty:
                break
            self._release(request)
            if request.future.set_running_or_notify_cancel():
                request.future.set_exception(QueueClosedError(self.name))
                failed += 1
        if failed:
            logger.warning(
                "Queue closed with pending requests",
                extra={"context": {"queue": self.name, "failed": failed}},
            )

    def consume(self, limiter: TokenBucket, stop: threading.Event) -> None:
        """Drain the queue until ``stop`` is set. Runs on one worker thread.

        On exit the queue is closed, so nothing enqueued afterwards or left
        behind stays pending.
        """
        logger.debug("Queue consumer started", extra={"context": {"queue": self.name}})
        try:
            while not stop.is_set():
                request = self.get()
                if request is None:
                    continue

                # Caller timed out while the request was still queued
                if not request.future.set_running_or_notify_cancel():
                    continue

                if not self._wait_for_token(limiter, stop):
                    request.future.set_exception(QueueClosedError(
                        self.name, f"Request queue '{self.name}' stopped before dispatch"
                    ))
                    break

                self._run(request)
        finally:
            self.close()
        logger.debug("Queue consumer stopped", extra={"context": {"queue": self.name}})

    def _wait_for_token(self, limiter: TokenBucket, stop: threading.Event) -> bool:
        while not limiter.acquire(timeout=self.drain_timeout):
            if stop.is_set():
                return False
        return True

    @staticmethod
    def _run(request: QueuedRequest) -> None:
        token = request_id_var.set(request.request_id)
        try:
            result = request.dispatch()
        except Exception as e:
            request.future.set_exception(e)
        else:
            request.future.set_result(result)
        finally:
            request_id_var.reset(token)
