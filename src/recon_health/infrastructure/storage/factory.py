"""Storage adapter selection."""

from recon_health.infrastructure.storage.base import InMemoryStore, MetricsStore
from recon_health.infrastructure.storage.local_store import LocalFileStore
from recon_health.infrastructure.storage.remote_store import RemoteStore
from recon_health.utils.exceptions import ConfigurationError
from recon_health.utils.parameters import GoalDefaultsConfig, StorageConfig


def build_store(
    config: StorageConfig, goal_defaults: GoalDefaultsConfig | None = None
) -> MetricsStore:
    """
    Build the storage adapter named by ``config.backend``.

    Raises:
        ConfigurationError: If the backend is unknown.
    """
    if config.backend == "local":
        return LocalFileStore(config.local, goal_defaults)
    if config.backend == "remote":
        return RemoteStore(config.remote, goal_defaults)
    if config.backend == "memory":
        return InMemoryStore(goal_defaults)
    raise ConfigurationError(f"Unknown storage backend: {config.backend}")
