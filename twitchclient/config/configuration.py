"""Immutable client configuration.

Every ``with_*`` step returns a new snapshot; nothing mutates a
configuration once created, and the assembler only ever reads it.

    config = (
        ClientConfiguration(client_id="abc", client_secret="xyz")
        .enable(ModuleKind.HELIX, ModuleKind.CHAT)
        .with_(timeout=10.0)
    )
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any

import httpx

from twitchclient.auth.credentials import CredentialManager, OAuth2Credential
from twitchclient.concurrency.pool import WorkerPool
from twitchclient.config.settings import Settings
from twitchclient.dispatch.queue import UNBOUNDED
from twitchclient.dispatch.ratelimit import Bandwidth
from twitchclient.events.manager import EventHandlerKind, EventManager
from twitchclient.modules.kinds import DEFAULT_BASE_URLS, ModuleKind, parse_module_kinds

DEFAULT_USER_AGENT = "twitchclient/0.3.0"


@dataclass(frozen=True)
class ClientConfiguration:
    # Identity
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    user_agent: str = DEFAULT_USER_AGENT
    redirect_url: str = "http://localhost"

    enabled_modules: frozenset[ModuleKind] = frozenset()

    # REST/query dispatch
    request_queue_size: int = UNBOUNDED
    request_queue_timeout: float = 1.0  # drain timeout in seconds
    timeout: float = 5.0  # seconds per call
    rate_limit: Bandwidth = Bandwidth.simple(800, 60.0)

    # Streaming dispatch
    chat_queue_size: int = 200
    chat_rate_limit: Bandwidth = Bandwidth.simple(20, 30.0)
    chat_queue_timeout: float = 1.0  # drain timeout in seconds
    chat_server: str = DEFAULT_BASE_URLS[ModuleKind.CHAT]
    chat_account: OAuth2Credential | None = None

    default_auth_token: OAuth2Credential | None = None

    # Collaborators; None = create one during assembly
    worker_pool: WorkerPool | None = None
    event_manager: EventManager | None = None
    default_event_handler: EventHandlerKind | None = EventHandlerKind.SIMPLE
    credential_manager: CredentialManager | None = None

    helper_thread_delay: float = 10.0  # seconds

    # Transport
    proxy_url: str | None = None
    http_debug: bool = False
    http_transport: httpx.BaseTransport | None = None

    def __post_init__(self):
        for name in ("request_queue_size", "chat_queue_size"):
            size = getattr(self, name)
            if size != UNBOUNDED and size <= 0:
                raise ValueError(f"{name} must be positive or UNBOUNDED ({UNBOUNDED}), got {size}")
        for name in ("timeout", "request_queue_timeout", "chat_queue_timeout", "helper_thread_delay"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than 0")
        # Accept any iterable of kinds or names
        object.__setattr__(
            self,
            "enabled_modules",
            frozenset(ModuleKind(kind) for kind in self.enabled_modules),
        )

    def with_(self, **changes: Any) -> "ClientConfiguration":
        """New snapshot with ``changes`` applied."""
        return dataclasses.replace(self, **changes)

    def enable(self, *kinds: ModuleKind) -> "ClientConfiguration":
        return self.with_(enabled_modules=self.enabled_modules | frozenset(kinds))

    def disable(self, *kinds: ModuleKind) -> "ClientConfiguration":
        return self.with_(enabled_modules=self.enabled_modules - frozenset(kinds))

    def is_enabled(self, kind: ModuleKind) -> bool:
        return kind in self.enabled_modules

    def with_default_auth_token(self, token: OAuth2Credential | None) -> "ClientConfiguration":
        return self.with_(default_auth_token=token)

    def with_worker_pool(self, pool: WorkerPool | None) -> "ClientConfiguration":
        return self.with_(worker_pool=pool)

    def with_event_manager(self, manager: EventManager | None) -> "ClientConfiguration":
        return self.with_(event_manager=manager)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfiguration":
        """Build a configuration from environment settings."""
        return cls(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            user_agent=settings.user_agent,
            redirect_url=settings.redirect_url,
            enabled_modules=parse_module_kinds(settings.enabled_modules_list),
            request_queue_size=settings.request_queue_size,
            request_queue_timeout=settings.request_queue_timeout,
            timeout=settings.timeout,
            rate_limit=Bandwidth.simple(settings.rate_limit_capacity, settings.rate_limit_period),
            chat_queue_size=settings.chat_queue_size,
            chat_rate_limit=Bandwidth.simple(
                settings.chat_rate_limit_capacity, settings.chat_rate_limit_period
            ),
            chat_queue_timeout=settings.chat_queue_timeout,
            helper_thread_delay=settings.helper_thread_delay,
            default_event_handler=EventHandlerKind(settings.default_event_handler),
            proxy_url=settings.proxy_url or None,
            http_debug=settings.http_debug,
        )
