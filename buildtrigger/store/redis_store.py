import json
from typing import Any, Dict, List, Optional

from redis import asyncio as aioredis
from redis.exceptions import WatchError

from ..core.errors import ConflictError, NotFoundError
from ..core.models import BuildConfig, Build
from .base import BaseBuildStore


class RedisBuildConfigStore(BaseBuildStore):
    """
    Redis-backed build configuration store.

    Build configurations are stored as JSON manifests under
    ``<prefix>bc:<namespace>:<name>``, builds under
    ``<prefix>build:<namespace>:<name>``. The resource version counter is
    ``<prefix>resource_version``.

    Updates use WATCH/MULTI so a concurrent writer makes the transaction
    fail, which surfaces as ConflictError.
    """

    def __init__(
        self,
        url: str = 'redis://localhost:6379',
        key_prefix: str = 'buildtrigger:',
        max_connections: int = 10
    ):
        """
        Initialize Redis store.

        Args:
            url: Redis connection URL
            key_prefix: Prefix for all keys (namespace isolation)
            max_connections: Max connections in pool
        """
        super().__init__()
        self.url = url
        self.key_prefix = key_prefix
        self.max_connections = max_connections
        self.redis: Optional[aioredis.Redis] = None

    def _config_key(self, namespace: str, name: str) -> str:
        return f"{self.key_prefix}bc:{namespace}:{name}"

    def _build_key(self, namespace: str, name: str) -> str:
        return f"{self.key_prefix}build:{namespace}:{name}"

    def _version_key(self) -> str:
        return f"{self.key_prefix}resource_version"

    @staticmethod
    def _serialize(data: Dict[str, Any]) -> str:
        return json.dumps(data, sort_keys=True)

    @staticmethod
    def _deserialize_config(raw: Optional[str]) -> Optional[BuildConfig]:
        if raw is None:
            return None
        return BuildConfig.from_dict(json.loads(raw))

    def _client(self) -> aioredis.Redis:
        if self.redis is None:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self.redis

    async def connect(self):
        self.redis = aioredis.from_url(
            self.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=self.max_connections
        )
        self.logger.info(f"Connected build config store to {self.url}")

    async def disconnect(self):
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None

    async def get(self, namespace: str, name: str) -> BuildConfig:
        raw = await self._client().get(self._config_key(namespace, name))
        build_config = self._deserialize_config(raw)
        if build_config is None:
            raise NotFoundError("BuildConfig", f"{namespace}/{name}")
        return build_config

    async def list(self, namespace: Optional[str] = None) -> List[BuildConfig]:
        pattern = self._config_key(namespace or "*", "*")
        client = self._client()
        keys = sorted([key async for key in client.scan_iter(match=pattern)])
        if not keys:
            return []
        values = await client.mget(keys)
        return [self._deserialize_config(raw) for raw in values if raw is not None]

    async def create(self, build_config: BuildConfig) -> BuildConfig:
        client = self._client()
        key = self._config_key(build_config.namespace, build_config.name)

        stored = build_config.copy()
        stored.resource_version = str(await client.incr(self._version_key()))
        created = await client.set(key, self._serialize(stored.to_dict()), nx=True)
        if not created:
            raise ConflictError(build_config.key)

        self._notify_add(stored)
        return stored.copy()

    async def update(self, build_config: BuildConfig) -> BuildConfig:
        client = self._client()
        key = self._config_key(build_config.namespace, build_config.name)

        async with client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                old = self._deserialize_config(await pipe.get(key))
                if old is None:
                    raise NotFoundError("BuildConfig", build_config.key)

                if build_config.resource_version and build_config.resource_version != old.resource_version:
                    raise ConflictError(
                        build_config.key,
                        expected=build_config.resource_version,
                        actual=old.resource_version
                    )

                stored = build_config.copy()
                stored.resource_version = str(await client.incr(self._version_key()))

                pipe.multi()
                pipe.set(key, self._serialize(stored.to_dict()))
                await pipe.execute()
            except WatchError:
                raise ConflictError(build_config.key, expected=build_config.resource_version)

        self.logger.debug(f"Updated build config {stored.key} to version {stored.resource_version}")
        self._notify_update(old, stored)
        return stored.copy()

    async def delete(self, namespace: str, name: str):
        client = self._client()
        key = self._config_key(namespace, name)
        raw = await client.get(key)
        removed = self._deserialize_config(raw)
        if removed is None or not await client.delete(key):
            raise NotFoundError("BuildConfig", f"{namespace}/{name}")

        self._notify_delete(removed)

    async def add_build(self, build: Build) -> Build:
        await self._client().set(
            self._build_key(build.namespace, build.name),
            self._serialize(build.to_dict())
        )
        return build

    async def list_builds(self, namespace: str, label_selector: Dict[str, str]) -> List[Build]:
        client = self._client()
        pattern = self._build_key(namespace, "*")
        keys = sorted([key async for key in client.scan_iter(match=pattern)])
        if not keys:
            return []

        builds = [
            Build.from_dict(json.loads(raw))
            for raw in await client.mget(keys)
            if raw is not None
        ]
        return [build for build in builds if build.matches(label_selector)]
