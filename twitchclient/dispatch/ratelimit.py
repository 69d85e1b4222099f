"""Token bucket rate limiting for outbound calls.

Each bucket holds up to ``capacity`` tokens and gains ``refill_quantity``
tokens per whole ``refill_period`` that has elapsed since the last refill.
Partial periods grant nothing, and time spent full is not credited. A call
proceeds only by spending one token.

Waiters are served in arrival order: a caller may take a token only once
every caller that arrived before it has been served (or gave up).
"""

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Bandwidth:
    capacity: int
    refill_quantity: int
    refill_period: float  # seconds

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError("capacity must be greater than 0")
        if self.refill_quantity <= 0:
            raise ValueError("refill_quantity must be greater than 0")
        if self.refill_period <= 0:
            raise ValueError("refill_period must be greater than 0")

    @classmethod
    def simple(cls, capacity: int, period: float) -> "Bandwidth":
        """Refill the whole capacity once per period."""
        return cls(capacity=capacity, refill_quantity=capacity, refill_period=period)


class TokenBucket:
    """Thread-safe token bucket with FIFO admission."""

    def __init__(self, bandwidth: Bandwidth, clock: Callable[[], float] = time.monotonic):
        self.bandwidth = bandwidth
        self._clock = clock
        self._tokens = bandwidth.capacity
        self._last_refill = clock()
        self._waiters: deque[object] = deque()
        self._condition = threading.Condition(threading.Lock())

    def _refill(self) -> None:
        """Credit whole elapsed periods. Caller must hold the condition.

        A full bucket does not bank time: the next period starts counting
        from the first token spent after it filled up.
        """
        now = self._clock()
        if self._tokens >= self.bandwidth.capacity:
            self._last_refill = now
            return
        periods = int((now - self._last_refill) // self.bandwidth.refill_period)
        if periods <= 0:
            return
        self._tokens = min(
            self.bandwidth.capacity,
            self._tokens + periods * self.bandwidth.refill_quantity,
        )
        self._last_refill += periods * self.bandwidth.refill_period

    def _until_next_refill(self) -> float:
        return max(0.0, self._last_refill + self.bandwidth.refill_period - self._clock())

    @property
    def available_tokens(self) -> int:
        with self._condition:
            self._refill()
            return self._tokens

    def try_acquire(self) -> bool:
        """Take a token if one is free and nobody is queued ahead. Never blocks."""
        with self._condition:
            self._refill()
            if self._waiters or self._tokens < 1:
                return False
            self._tokens -= 1
            return True

    def acquire(self, timeout: float | None = None) -> bool:
        """Block until a token is available, then spend it.

        Args:
            timeout: Max seconds to wait. None waits until the next refill
                that reaches this caller.

        Returns:
            True once a token was spent, False if the timeout elapsed first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        ticket = object()

        with self._condition:
            self._waiters.append(ticket)
            try:
                while True:
                    self._refill()
                    if self._waiters[0] is ticket and self._tokens >= 1:
                        self._tokens -= 1
                        return True

                    # Not our turn: sleep until notified. Our turn but empty:
                    # sleep until the refill tick.
                    wait = self._until_next_refill() if self._waiters[0] is ticket else None
                    if deadline is not None:
                        remaining = deadline - time.monotonic()
                        if remaining <= 0:
                            return False
                        wait = remaining if wait is None else min(wait, remaining)
                    self._condition.wait(wait)
            finally:
                self._waiters.remove(ticket)
                self._condition.notify_all()
