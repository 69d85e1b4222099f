"""Module factory: module kind -> configured instance."""

from twitchclient.concurrency.pool import WorkerPool
from twitchclient.config.configuration import ClientConfiguration
from twitchclient.dispatch.classifier import ErrorClassifier
from twitchclient.dispatch.queue import RequestQueue
from twitchclient.dispatch.ratelimit import TokenBucket
from twitchclient.events.manager import EventManager
from twitchclient.modules.base import ApiModule
from twitchclient.modules.graphql import GraphQLModule
from twitchclient.modules.kinds import DEFAULT_BASE_URLS, ModuleKind
from twitchclient.modules.rest import RestModule, build_http_client
from twitchclient.modules.streaming import StreamingModule


def create_module(
    kind: ModuleKind,
    config: ClientConfiguration,
    pool: WorkerPool,
    classifier: ErrorClassifier,
    event_manager: EventManager,
) -> ApiModule:
    """Build one module with its own queue and rate limiter."""
    if kind.is_streaming:
        common = dict(
            pool=pool,
            request_queue=RequestQueue(
                kind.value, config.chat_queue_size, drain_timeout=config.chat_queue_timeout
            ),
            rate_limiter=TokenBucket(config.chat_rate_limit),
            classifier=classifier,
            event_manager=event_manager,
            timeout=config.timeout,
        )
        server_url = config.chat_server if kind is ModuleKind.CHAT else DEFAULT_BASE_URLS[kind]
        return StreamingModule(kind, server_url=server_url, **common)

    common = dict(
        pool=pool,
        request_queue=RequestQueue(
            kind.value, config.request_queue_size, drain_timeout=config.request_queue_timeout
        ),
        rate_limiter=TokenBucket(config.rate_limit),
        classifier=classifier,
        event_manager=event_manager,
        timeout=config.timeout,
        base_url=DEFAULT_BASE_URLS[kind],
        client_id=config.client_id,
        user_agent=config.user_agent,
        http_client=build_http_client(
            config.timeout,
            proxy_url=config.proxy_url,
            transport=config.http_transport,
            debug=config.http_debug,
        ),
    )
    if kind is ModuleKind.GRAPHQL:
        return GraphQLModule(kind, **common)
    if kind is ModuleKind.HELIX:
        # Only helix takes the default token; other surfaces use per-call tokens
        return RestModule(kind, default_auth_token=config.default_auth_token, **common)
    if kind in (ModuleKind.EXTENSIONS, ModuleKind.KRAKEN, ModuleKind.TMI):
        return RestModule(kind, **common)
    raise ValueError(f"Unknown module: {kind}")
