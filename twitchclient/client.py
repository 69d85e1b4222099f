"""The composed client handle returned by the assembler."""

import logging
import threading
from collections.abc import Callable

from twitchclient.auth.credentials import CredentialManager
from twitchclient.concurrency.pool import ScheduledTask
from twitchclient.concurrency.provisioner import ProvisionedPool
from twitchclient.events.manager import EventManager, HelperTickEvent
from twitchclient.modules.base import ApiModule
from twitchclient.modules.graphql import GraphQLModule
from twitchclient.modules.kinds import ModuleKind
from twitchclient.modules.rest import RestModule
from twitchclient.modules.streaming import StreamingModule

logger = logging.getLogger(__name__)


class ClientHelper:
    """Periodic maintenance on the shared pool.

    Runs the registered jobs every ``delay`` seconds and publishes a
    HelperTickEvent afterwards.
    """

    def __init__(self, provisioned: ProvisionedPool, event_manager: EventManager, delay: float = 10.0):
        self._pool = provisioned.pool
        self._event_manager = event_manager
        self._delay = delay
        self._jobs: list[Callable[[], None]] = []
        self._lock = threading.Lock()
        self._task: ScheduledTask | None = None
        self.ticks = 0

    @property
    def delay(self) -> float:
        return self._delay

    def set_thread_delay(self, delay: float) -> None:
        if delay <= 0:
            raise ValueError("delay must be greater than 0")
        self._delay = delay
        if self._task is not None:
            self._task.set_delay(delay)

    def register(self, job: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            self._jobs.append(job)
        return job

    def start(self) -> None:
        if self._task is None:
            self._task = self._pool.schedule_with_fixed_delay(self.run_once, self._delay, name="client-helper")

    def run_once(self) -> None:
        with self._lock:
            jobs = list(self._jobs)
        for job in jobs:
            job()
        self.ticks += 1
        self._event_manager.publish(HelperTickEvent(tick=self.ticks))

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()


class TwitchClient:
    """Composed handle over the enabled modules. Disabled modules are None."""

    def __init__(
        self,
        event_manager: EventManager,
        credential_manager: CredentialManager,
        provisioned_pool: ProvisionedPool,
        modules: dict[ModuleKind, ApiModule],
    ):
        self.event_manager = event_manager
        self.credential_manager = credential_manager
        self.provisioned_pool = provisioned_pool
        self._modules = dict(modules)
        self.helper = ClientHelper(provisioned_pool, event_manager)
        self._closed = False

    @property
    def modules(self) -> dict[ModuleKind, ApiModule]:
        return dict(self._modules)

    @property
    def extensions(self) -> RestModule | None:
        return self._modules.get(ModuleKind.EXTENSIONS)

    @property
    def helix(self) -> RestModule | None:
        return self._modules.get(ModuleKind.HELIX)

    @property
    def kraken(self) -> RestModule | None:
        return self._modules.get(ModuleKind.KRAKEN)

    @property
    def tmi(self) -> RestModule | None:
        return self._modules.get(ModuleKind.TMI)

    @property
    def graphql(self) -> GraphQLModule | None:
        return self._modules.get(ModuleKind.GRAPHQL)

    @property
    def chat(self) -> StreamingModule | None:
        return self._modules.get(ModuleKind.CHAT)

    @property
    def pubsub(self) -> StreamingModule | None:
        return self._modules.get(ModuleKind.PUBSUB)

    def start(self) -> None:
        """Start every module consumer and the helper task."""
        for module in self._modules.values():
            module.start()
        self.helper.start()

    def close(self) -> None:
        """Stop modules and the helper; shut down the pool only if we created it."""
        if self._closed:
            return
        self._closed = True
        self.helper.stop()
        for module in self._modules.values():
            module.close()
        if self.provisioned_pool.owned:
            self.provisioned_pool.pool.shutdown(wait=True)
        logger.info("Client closed", extra={"context": {"pool": self.provisioned_pool.pool.name}})

    def __enter__(self) -> "TwitchClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
