"""Worker budget computation for the enabled modules."""

import logging
import warnings
from collections.abc import Iterable
from dataclasses import dataclass

from twitchclient.concurrency.pool import WorkerPool, generate_pool_name
from twitchclient.errors import UndersizedPoolWarning
from twitchclient.modules.kinds import (
    BASE_THREAD_REQUIREMENT,
    MODULE_THREAD_REQUIREMENTS,
    ModuleKind,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionedPool:
    pool: WorkerPool
    required_threads: int
    owned: bool  # False for a caller-supplied pool; the client never shuts it down
    warning: UndersizedPoolWarning | None = None

    @property
    def undersized(self) -> bool:
        return self.warning is not None


def required_thread_count(enabled: Iterable[ModuleKind]) -> int:
    return BASE_THREAD_REQUIREMENT + sum(MODULE_THREAD_REQUIREMENTS[kind] for kind in set(enabled))


def provision_pool(
    enabled: Iterable[ModuleKind],
    supplied: WorkerPool | None = None,
) -> ProvisionedPool:
    """Size a new pool for ``enabled``, or check a supplied one against it.

    A supplied pool that is too small is reported, not resized.
    """
    required = required_thread_count(enabled)

    if supplied is None:
        pool = WorkerPool(required, name=generate_pool_name())
        logger.debug(
            "Worker pool created",
            extra={"context": {"pool": pool.name, "threads": required}},
        )
        return ProvisionedPool(pool=pool, required_threads=required, owned=True)

    warning = None
    if supplied.max_workers < required:
        warning = UndersizedPoolWarning(required, supplied.max_workers)
        logger.warning(
            str(warning),
            extra={"context": {
                "pool": supplied.name,
                "required_threads": required,
                "available_threads": supplied.max_workers,
            }},
        )
        warnings.warn(warning, stacklevel=2)

    return ProvisionedPool(pool=supplied, required_threads=required, owned=False, warning=warning)
