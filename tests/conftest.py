"""Shared fixtures for the twitchclient test suite."""

import threading

import httpx
import pytest

from twitchclient.concurrency.pool import WorkerPool
from twitchclient.config.configuration import ClientConfiguration
from twitchclient.config.settings import get_settings
from twitchclient.dispatch.classifier import ErrorClassifier
from twitchclient.dispatch.queue import RequestQueue
from twitchclient.dispatch.ratelimit import Bandwidth, TokenBucket
from twitchclient.events.manager import EventManager, SimpleEventHandler
from twitchclient.modules.kinds import ModuleKind
from twitchclient.modules.rest import RestModule
from twitchclient.modules.streaming import Connection

# Short drain timeouts keep consumer shutdown fast in tests
FAST_DRAIN = 0.05


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings cache.

    Usage:
        override_settings(TWITCH_CLIENT_ID="abc", TWITCH_TIMEOUT="2.5")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        # Clear lru_cache so Settings re-reads env
        get_settings.cache_clear()

    yield _override

    # Always clear cache on teardown so other tests get fresh settings
    get_settings.cache_clear()


@pytest.fixture
def worker_pool():
    """A small pool shut down after the test."""
    pool = WorkerPool(4, name="test-pool")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def event_manager() -> EventManager:
    return EventManager(default_handler=SimpleEventHandler())


@pytest.fixture
def base_config() -> ClientConfiguration:
    """Configuration with fast queue timeouts and a generous rate limit."""
    return ClientConfiguration(
        client_id="test-client-id",
        client_secret="test-client-secret",
        request_queue_timeout=FAST_DRAIN,
        chat_queue_timeout=FAST_DRAIN,
        rate_limit=Bandwidth.simple(100, 1.0),
        chat_rate_limit=Bandwidth.simple(100, 1.0),
        timeout=2.0,
    )


@pytest.fixture
def make_rest_module(worker_pool, event_manager):
    """Factory fixture: a started helix RestModule backed by ``handler``.

    ``handler`` receives each httpx.Request and returns an httpx.Response,
    as with httpx.MockTransport.
    """
    modules = []

    def _make(handler, *, capacity=-1, bandwidth=None, timeout=2.0, http_client=None, **kwargs):
        client = http_client if http_client is not None else httpx.Client(transport=httpx.MockTransport(handler))
        module = RestModule(
            ModuleKind.HELIX,
            pool=worker_pool,
            request_queue=RequestQueue("helix", capacity, drain_timeout=FAST_DRAIN),
            rate_limiter=TokenBucket(bandwidth or Bandwidth.simple(100, 1.0)),
            classifier=ErrorClassifier(),
            event_manager=event_manager,
            timeout=timeout,
            base_url="https://api.twitch.tv/helix",
            client_id="test-client-id",
            user_agent="twitchclient-tests",
            http_client=client,
            **kwargs,
        )
        module.start()
        modules.append(module)
        return module

    yield _make

    for module in modules:
        module.close()


class RecordingConnection(Connection):
    """Connection double that records every message it is asked to send."""

    def __init__(self):
        self.sent: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def send(self, message: str) -> None:
        with self._lock:
            self.sent.append(message)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recording_connection() -> RecordingConnection:
    return RecordingConnection()


def make_response(status: int, content: bytes = b"", *, url="https://api.twitch.tv/helix/users",
                  method="GET", headers=None) -> httpx.Response:
    """Completed response tied to a request, as the classifier expects."""
    request = httpx.Request(method, url, headers=headers or {"Client-Id": "abc"})
    return httpx.Response(status, content=content, request=request)
