"""Client assembly: configuration in, composed TwitchClient out.

Assembly is one-shot and fail-fast. Any error while registering identity,
resolving the event manager, provisioning the pool or constructing a module
propagates to the caller and no client is returned.
"""

import logging
from enum import Enum

from twitchclient.auth.credentials import CredentialManager, register_identity_provider
from twitchclient.client import TwitchClient
from twitchclient.concurrency.provisioner import provision_pool
from twitchclient.config.configuration import ClientConfiguration
from twitchclient.dispatch.classifier import ErrorClassifier
from twitchclient.errors import AssemblyStateError, FatalConfigurationError
from twitchclient.events.manager import EventManager, create_event_handler
from twitchclient.modules.base import ApiModule
from twitchclient.modules.kinds import ModuleKind
from twitchclient.modules.registry import create_module

logger = logging.getLogger(__name__)


class AssemblyState(str, Enum):
    UNBUILT = "unbuilt"
    BUILT = "built"


def resolve_event_manager(config: ClientConfiguration) -> EventManager:
    """Use the supplied event manager or create one; either way it needs a default handler."""
    if config.event_manager is not None:
        if config.event_manager.default_handler is None:
            raise FatalConfigurationError(
                "twitchclient will not be functional unless the supplied event manager "
                "has a default event handler for internal events"
            )
        return config.event_manager

    if config.default_event_handler is None:
        raise FatalConfigurationError(
            "twitchclient will not be functional without a default event handler"
        )
    return EventManager(default_handler=create_event_handler(config.default_event_handler))


class ClientAssembler:
    """Builds exactly one TwitchClient from one configuration."""

    def __init__(self, config: ClientConfiguration):
        self.config = config
        self.state = AssemblyState.UNBUILT

    def build(self) -> TwitchClient:
        if self.state is AssemblyState.BUILT:
            raise AssemblyStateError("ClientAssembler.build() may only be called once")
        self.state = AssemblyState.BUILT
        config = self.config

        logger.debug(
            "Assembling client",
            extra={"context": {"modules": sorted(kind.value for kind in config.enabled_modules)}},
        )

        # 1. Identity
        credential_manager = config.credential_manager or CredentialManager()
        register_identity_provider(
            credential_manager, config.client_id, config.client_secret, config.redirect_url
        )
        for credential in (config.default_auth_token, config.chat_account):
            if credential is not None:
                credential_manager.add_credential(credential)

        # 2. Event notification
        event_manager = resolve_event_manager(config)

        # 3. Worker pool
        provisioned = provision_pool(config.enabled_modules, config.worker_pool)

        # 4. Modules, in declaration order
        classifier = ErrorClassifier()
        modules: dict[ModuleKind, ApiModule] = {}
        try:
            for kind in ModuleKind:
                if config.is_enabled(kind):
                    modules[kind] = create_module(kind, config, provisioned.pool, classifier, event_manager)
        except Exception:
            for module in modules.values():
                module.close()
            if provisioned.owned:
                provisioned.pool.shutdown(wait=False)
            raise

        # 5. Compose and start
        client = TwitchClient(event_manager, credential_manager, provisioned, modules)
        client.helper.set_thread_delay(config.helper_thread_delay)
        client.start()

        logger.info(
            "Client assembled",
            extra={"context": {
                "pool": provisioned.pool.name,
                "required_threads": provisioned.required_threads,
                "pool_owned": provisioned.owned,
                "undersized": provisioned.undersized,
            }},
        )
        return client


def build_client(config: ClientConfiguration) -> TwitchClient:
    return ClientAssembler(config).build()
