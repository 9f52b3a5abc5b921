import asyncio
from typing import Dict, List, Optional, Tuple

from ..core.errors import ConflictError, NotFoundError
from ..core.models import BuildConfig, Build
from .base import BaseBuildStore


class InMemoryBuildStore(BaseBuildStore):
    """
    In-memory build configuration store.

    Objects are deep-copied on the way in and out so callers never share
    state with the store. Resource versions come from a store-wide counter.
    asyncio.Lock serializes the check-and-write of concurrent updates.
    """

    def __init__(self):
        super().__init__()
        self.lock = asyncio.Lock()
        self._build_configs: Dict[Tuple[str, str], BuildConfig] = {}
        self._builds: Dict[Tuple[str, str], Build] = {}
        self._version = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    async def get(self, namespace: str, name: str) -> BuildConfig:
        stored = self._build_configs.get((namespace, name))
        if stored is None:
            raise NotFoundError("BuildConfig", f"{namespace}/{name}")
        return stored.copy()

    async def list(self, namespace: Optional[str] = None) -> List[BuildConfig]:
        return [
            bc.copy()
            for (ns, _), bc in sorted(self._build_configs.items())
            if namespace is None or ns == namespace
        ]

    async def create(self, build_config: BuildConfig) -> BuildConfig:
        async with self.lock:
            key = (build_config.namespace, build_config.name)
            if key in self._build_configs:
                raise ConflictError(
                    build_config.key,
                    expected=None,
                    actual=self._build_configs[key].resource_version
                )

            stored = build_config.copy()
            stored.resource_version = self._next_version()
            self._build_configs[key] = stored

        self.logger.debug(f"Created build config {stored.key} at version {stored.resource_version}")
        self._notify_add(stored)
        return stored.copy()

    async def update(self, build_config: BuildConfig) -> BuildConfig:
        async with self.lock:
            key = (build_config.namespace, build_config.name)
            old = self._build_configs.get(key)
            if old is None:
                raise NotFoundError("BuildConfig", build_config.key)

            if build_config.resource_version and build_config.resource_version != old.resource_version:
                raise ConflictError(
                    build_config.key,
                    expected=build_config.resource_version,
                    actual=old.resource_version
                )

            stored = build_config.copy()
            stored.resource_version = self._next_version()
            self._build_configs[key] = stored

        self.logger.debug(f"Updated build config {stored.key} to version {stored.resource_version}")
        self._notify_update(old, stored)
        return stored.copy()

    async def delete(self, namespace: str, name: str):
        async with self.lock:
            removed = self._build_configs.pop((namespace, name), None)
            if removed is None:
                raise NotFoundError("BuildConfig", f"{namespace}/{name}")

        self._notify_delete(removed)

    async def add_build(self, build: Build) -> Build:
        async with self.lock:
            self._builds[(build.namespace, build.name)] = build
        return build

    async def list_builds(self, namespace: str, label_selector: Dict[str, str]) -> List[Build]:
        return [
            build
            for (ns, _), build in sorted(self._builds.items())
            if ns == namespace and build.matches(label_selector)
        ]
