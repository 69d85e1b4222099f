"""Shared worker pool with fixed-delay scheduling.

Long-running work (queue consumers, keepalives, the client helper) runs as
tasks that occupy one worker each for their whole lifetime, which is why the
pool must be sized to the sum of what the enabled modules need.
"""

import logging
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

logger = logging.getLogger(__name__)


def generate_pool_name(prefix: str = "twitchclient") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


class ScheduledTask:
    """Handle for a fixed-delay task; the delay may change while it runs."""

    def __init__(self, fn: Callable[[], Any], delay: float, name: str):
        if delay <= 0:
            raise ValueError("delay must be greater than 0")
        self.fn = fn
        self.name = name
        self._delay = delay
        self._stopped = threading.Event()
        self.future: Future | None = None

    @property
    def delay(self) -> float:
        return self._delay

    def set_delay(self, delay: float) -> None:
        """Takes effect after the current wait."""
        if delay <= 0:
            raise ValueError("delay must be greater than 0")
        self._delay = delay

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def cancel(self) -> None:
        self._stopped.set()

    def run(self) -> None:
        while not self._stopped.wait(self._delay):
            try:
                self.fn()
            except Exception:
                logger.exception(
                    "Scheduled task failed",
                    extra={"context": {"task": self.name}},
                )


class WorkerPool:
    """Fixed-size thread pool. Its capacity is read, never resized."""

    def __init__(self, max_workers: int, name: str | None = None):
        if max_workers <= 0:
            raise ValueError("max_workers must be greater than 0")
        self.name = name or generate_pool_name()
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=self.name
        )

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        return self._executor.submit(fn, *args, **kwargs)

    def schedule_with_fixed_delay(
        self, fn: Callable[[], Any], delay: float, name: str = ""
    ) -> ScheduledTask:
        """Run ``fn`` every ``delay`` seconds, starting one delay from now."""
        task = ScheduledTask(fn, delay, name or getattr(fn, "__name__", "task"))
        task.future = self.submit(task.run)
        return task

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
