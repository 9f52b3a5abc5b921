"""
Base class for build configuration stores.
"""
import logging
from abc import abstractmethod
from typing import Dict, List, Optional, Protocol

from ..controller.interfaces import BuildConfigLister, BuildConfigUpdater, BuildLister
from ..core.models import BuildConfig, Build


class BuildConfigEventHandler(Protocol):
    """Receives change notifications from a store"""

    def on_add(self, build_config: BuildConfig) -> None: ...

    def on_update(self, old: Optional[BuildConfig], current: BuildConfig) -> None: ...

    def on_delete(self, build_config: BuildConfig) -> None: ...


class BaseBuildStore(BuildConfigLister, BuildConfigUpdater):
    """
    Storage for build configurations and the builds created from them.

    All writes of a build configuration are checked against its
    resource_version: an empty resource_version writes unconditionally,
    anything else must match the stored version or ConflictError is raised.
    Every successful write assigns a new resource_version.

    Handlers registered with add_event_handler() are notified after each
    write made through this store.
    """

    def __init__(self):
        self._handlers: List[BuildConfigEventHandler] = []
        self.logger = logging.getLogger(__name__)

    def add_event_handler(self, handler: BuildConfigEventHandler):
        self._handlers.append(handler)

    def _notify_add(self, build_config: BuildConfig):
        for handler in self._handlers:
            handler.on_add(build_config.copy())

    def _notify_update(self, old: Optional[BuildConfig], current: BuildConfig):
        for handler in self._handlers:
            handler.on_update(
                old.copy() if old is not None else None,
                current.copy()
            )

    def _notify_delete(self, build_config: BuildConfig):
        for handler in self._handlers:
            handler.on_delete(build_config.copy())

    @abstractmethod
    async def create(self, build_config: BuildConfig) -> BuildConfig:
        """Store a new build configuration; ConflictError if it already exists"""
        pass

    @abstractmethod
    async def update(self, build_config: BuildConfig) -> BuildConfig:
        """Replace a stored build configuration"""
        pass

    @abstractmethod
    async def delete(self, namespace: str, name: str):
        """Remove a build configuration; NotFoundError if absent"""
        pass

    @abstractmethod
    async def add_build(self, build: Build) -> Build:
        """Record a build run"""
        pass

    @abstractmethod
    async def list_builds(self, namespace: str, label_selector: Dict[str, str]) -> List[Build]:
        pass

    async def update_trigger_status(self, build_config: BuildConfig) -> BuildConfig:
        """
        Persist a reconciled build configuration.

        status.last_version belongs to the execution engine and is kept from
        the stored copy. The write is checked against the resource version
        of the copy that last_version was read from, so a concurrent bump
        raises ConflictError instead of being overwritten.
        """
        stored = await self.get(build_config.namespace, build_config.name)
        to_write = build_config.copy()
        to_write.status.last_version = stored.status.last_version
        if not to_write.resource_version:
            to_write.resource_version = stored.resource_version
        return await self.update(to_write)

    async def connect(self):
        """Open connections (no-op for local stores)"""
        pass

    async def disconnect(self):
        """Close connections (no-op for local stores)"""
        pass


class StoreBuildLister(BuildLister):
    """BuildLister view over a store's build records"""

    def __init__(self, store: BaseBuildStore):
        self.store = store

    async def list(self, namespace: str, label_selector: Dict[str, str]) -> List[Build]:
        return await self.store.list_builds(namespace, label_selector)
