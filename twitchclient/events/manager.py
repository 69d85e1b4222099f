"""Internal event notification.

Modules publish events (delivered messages, helper ticks) through the
client's EventManager. How subscribers are invoked is decided by the
manager's default handler, picked from a closed set of strategies.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class Event:
    fired_at: datetime = field(default_factory=_now, kw_only=True)


@dataclass(frozen=True)
class HelperTickEvent(Event):
    tick: int


@dataclass(frozen=True)
class MessageSentEvent(Event):
    module: str
    message: str


Subscriber = Callable[[Event], None]


class EventHandler(ABC):
    """Strategy for delivering one event to its subscribers."""

    @abstractmethod
    def handle(self, event: Event, subscribers: list[Subscriber]) -> None:
        ...


class SimpleEventHandler(EventHandler):
    """Calls subscribers in order on the publishing thread. Errors propagate."""

    def handle(self, event: Event, subscribers: list[Subscriber]) -> None:
        for subscriber in subscribers:
            subscriber(event)


class IsolatedEventHandler(EventHandler):
    """Calls every subscriber; a failing one is logged and the rest still run."""

    def handle(self, event: Event, subscribers: list[Subscriber]) -> None:
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Event subscriber failed",
                    extra={"context": {
                        "event": type(event).__name__,
                        "subscriber": getattr(subscriber, "__qualname__", repr(subscriber)),
                    }},
                )


class EventHandlerKind(str, Enum):
    SIMPLE = "simple"
    ISOLATED = "isolated"


def create_event_handler(kind: EventHandlerKind) -> EventHandler:
    if kind is EventHandlerKind.SIMPLE:
        return SimpleEventHandler()
    elif kind is EventHandlerKind.ISOLATED:
        return IsolatedEventHandler()
    raise ValueError(f"Unknown event handler: {kind}")


class EventManager:
    """Subscriber registry; subscriptions match the event type or a base of it."""

    def __init__(self, default_handler: EventHandler | None = None):
        self.default_handler = default_handler
        self._subscriptions: list[tuple[type[Event], Subscriber]] = []
        self._lock = threading.Lock()

    def on(self, event_type: type[Event], subscriber: Subscriber) -> Subscriber:
        with self._lock:
            self._subscriptions.append((event_type, subscriber))
        return subscriber

    def remove(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s[1] is not subscriber]

    def publish(self, event: Event) -> None:
        if self.default_handler is None:
            raise RuntimeError("EventManager has no default event handler")
        with self._lock:
            subscribers = [fn for event_type, fn in self._subscriptions if isinstance(event, event_type)]
        self.default_handler.handle(event, subscribers)
