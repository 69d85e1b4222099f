"""Persistent streaming modules (chat, pubsub).

Framing and parsing belong to the attached Connection; this module only
rate-limits and orders outbound messages and keeps the connection alive.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any

from twitchclient.concurrency.pool import ScheduledTask
from twitchclient.errors import NotConnectedError
from twitchclient.events.manager import MessageSentEvent
from twitchclient.modules.base import ApiModule
from twitchclient.modules.kinds import ModuleKind

logger = logging.getLogger(__name__)

KEEPALIVE_INTERVALS = {
    ModuleKind.CHAT: 60.0,
    ModuleKind.PUBSUB: 240.0,  # upstream drops connections silent for 5 minutes
}

PING_MESSAGES = {
    ModuleKind.CHAT: "PING :tmi.twitch.tv",
    ModuleKind.PUBSUB: json.dumps({"type": "PING"}),
}


class Connection(ABC):
    """Outbound side of an established streaming connection."""

    @abstractmethod
    def send(self, message: str) -> None:
        ...

    def close(self) -> None:
        """Override if the connection holds resources."""
        pass


class StreamingModule(ApiModule):
    """Queues outbound messages for one persistent connection."""

    def __init__(self, *args: Any, server_url: str, keepalive_interval: float | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.server_url = server_url
        self.keepalive_interval = keepalive_interval or KEEPALIVE_INTERVALS[self.kind]
        self._connection: Connection | None = None
        self._connection_lock = threading.Lock()
        self._keepalive: ScheduledTask | None = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    def attach(self, connection: Connection) -> None:
        with self._connection_lock:
            self._connection = connection
        logger.info(
            "Connection attached",
            extra={"context": {"module": self.name, "server": self.server_url}},
        )

    def detach(self) -> Connection | None:
        with self._connection_lock:
            connection, self._connection = self._connection, None
        return connection

    def start(self) -> None:
        super().start()
        if self._keepalive is None:
            self._keepalive = self.pool.schedule_with_fixed_delay(
                self._send_keepalive, self.keepalive_interval, name=f"{self.name}-keepalive"
            )

    def send_raw(self, message: str) -> Future:
        """Queue a message. The future resolves once it was written.

        Raises:
            NotConnectedError: no connection is attached.
            QueueFullError: the outbound queue is full.
            QueueClosedError: the module was closed.
        """
        if not self.connected:
            raise NotConnectedError(f"{self.name} has no connection attached")
        return self.submit(lambda: self._deliver(message))

    def _deliver(self, message: str) -> None:
        with self._connection_lock:
            connection = self._connection
        if connection is None:
            raise NotConnectedError(f"{self.name} connection was detached before delivery")
        connection.send(message)
        self.event_manager.publish(MessageSentEvent(module=self.name, message=message))

    def _send_keepalive(self) -> None:
        if self.connected:
            self.send_raw(PING_MESSAGES[self.kind])

    def close(self) -> None:
        super().close()
        if self._keepalive is not None:
            self._keepalive.cancel()
        connection = self.detach()
        if connection is not None:
            connection.close()
