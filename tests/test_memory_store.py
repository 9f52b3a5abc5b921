"""
Test cases for InMemoryBuildStore and LocalBuildInstantiator.
"""

import pytest
from unittest.mock import Mock, patch
from buildtrigger.client import LocalBuildInstantiator
from buildtrigger.core.errors import ConflictError, NotFoundError
from buildtrigger.core.models import BuildRequest, ImageChangeTriggerStatus, ObjectReference
from buildtrigger.store import InMemoryBuildStore, RedisBuildConfigStore, StoreBuildLister, get_build_store


class TestInMemoryBuildStore:
    """Test CRUD and optimistic concurrency"""

    @pytest.mark.asyncio
    async def test_create_assigns_resource_version(self, memory_store, base_build_config):
        stored = await memory_store.create(base_build_config())

        assert stored.resource_version == "1"
        assert (await memory_store.get("default", "testBuildConfig")).resource_version == "1"

    @pytest.mark.asyncio
    async def test_create_twice_conflicts(self, memory_store, base_build_config):
        await memory_store.create(base_build_config())

        with pytest.raises(ConflictError):
            await memory_store.create(base_build_config())

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, memory_store):
        with pytest.raises(NotFoundError):
            await memory_store.get("default", "missing")

    @pytest.mark.asyncio
    async def test_returned_objects_are_copies(self, memory_store, base_build_config):
        stored = await memory_store.create(base_build_config())
        stored.status.last_version = 42

        assert (await memory_store.get("default", "testBuildConfig")).status.last_version == 0

    @pytest.mark.asyncio
    async def test_stale_update_conflicts(self, memory_store, base_build_config):
        first = await memory_store.create(base_build_config())
        second = first.copy()
        await memory_store.update(first)

        with pytest.raises(ConflictError) as exc_info:
            await memory_store.update(second)

        assert exc_info.value.expected == "1"
        assert exc_info.value.actual == "2"

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, memory_store, base_build_config):
        with pytest.raises(NotFoundError):
            await memory_store.update(base_build_config())

    @pytest.mark.asyncio
    async def test_list_filters_namespace(self, memory_store, base_build_config):
        await memory_store.create(base_build_config(name="a", namespace="one"))
        await memory_store.create(base_build_config(name="b", namespace="two"))

        assert [bc.name for bc in await memory_store.list()] == ["a", "b"]
        assert [bc.name for bc in await memory_store.list("two")] == ["b"]

    @pytest.mark.asyncio
    async def test_delete(self, memory_store, base_build_config):
        await memory_store.create(base_build_config())

        await memory_store.delete("default", "testBuildConfig")

        with pytest.raises(NotFoundError):
            await memory_store.delete("default", "testBuildConfig")

    @pytest.mark.asyncio
    async def test_update_trigger_status_keeps_last_version(self, memory_store, base_build_config):
        stored = await memory_store.create(base_build_config())
        engine_copy = stored.copy()
        engine_copy.status.last_version = 3
        engine_copy.resource_version = ""
        await memory_store.update(engine_copy)

        stale_version = stored.copy()
        stale_version.resource_version = ""
        stale_version.status.image_change_triggers = [
            ImageChangeTriggerStatus(from_ref=ObjectReference(name="test:latest"))
        ]
        result = await memory_store.update_trigger_status(stale_version)

        assert result.status.last_version == 3
        assert result.status.image_change_triggers[0].from_ref.name == "test:latest"

    @pytest.mark.asyncio
    async def test_update_trigger_status_conflicts_with_concurrent_bump(self, memory_store, base_build_config):
        await memory_store.create(base_build_config())
        read_store = memory_store.get

        async def get_then_bump(namespace, name):
            snapshot = await read_store(namespace, name)
            bumped = snapshot.copy()
            bumped.status.last_version = 1
            await memory_store.update(bumped)
            return snapshot

        to_write = base_build_config()
        with patch.object(memory_store, 'get', side_effect=get_then_bump):
            with pytest.raises(ConflictError):
                await memory_store.update_trigger_status(to_write)

        assert (await memory_store.get("default", "testBuildConfig")).status.last_version == 1

    @pytest.mark.asyncio
    async def test_event_handlers_notified(self, memory_store, base_build_config):
        handler = Mock()
        memory_store.add_event_handler(handler)

        stored = await memory_store.create(base_build_config())
        await memory_store.update(stored)
        await memory_store.delete("default", "testBuildConfig")

        handler.on_add.assert_called_once()
        handler.on_update.assert_called_once()
        old, current = handler.on_update.call_args.args
        assert old.resource_version == "1"
        assert current.resource_version == "2"
        handler.on_delete.assert_called_once()


class TestLocalBuildInstantiator:
    """Test the local execution engine stand-in"""

    @pytest.mark.asyncio
    async def test_instantiate_bumps_version_and_records_build(self, memory_store, base_build_config):
        await memory_store.create(base_build_config())
        instantiator = LocalBuildInstantiator(memory_store)

        first = await instantiator.instantiate(BuildRequest(name="testBuildConfig", triggered_by=["manual"]))
        second = await instantiator.instantiate(BuildRequest(name="testBuildConfig"))

        assert first.name == "testBuildConfig-1"
        assert first.triggered_by == ["manual"]
        assert second.number == 2
        stored = await memory_store.get("default", "testBuildConfig")
        assert stored.status.last_version == 2

        builds = await StoreBuildLister(memory_store).list("default", {"buildconfig": "testBuildConfig"})
        assert [build.name for build in builds] == ["testBuildConfig-1", "testBuildConfig-2"]
        assert await StoreBuildLister(memory_store).list("default", {"buildconfig": "other"}) == []

    @pytest.mark.asyncio
    async def test_instantiate_missing_config(self, memory_store):
        with pytest.raises(NotFoundError):
            await LocalBuildInstantiator(memory_store).instantiate(BuildRequest(name="missing"))


class TestStoreFactory:
    """Test get_build_store"""

    def test_memory(self):
        assert isinstance(get_build_store('memory', {}), InMemoryBuildStore)

    def test_redis(self):
        store = get_build_store('Redis', {'url': 'redis://example:6379', 'key_prefix': 'bt:'})

        assert isinstance(store, RedisBuildConfigStore)
        assert store.url == 'redis://example:6379'
        assert store._config_key('ns', 'app') == 'bt:bc:ns:app'
        assert store._build_key('ns', 'app-1') == 'bt:build:ns:app-1'

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_build_store('etcd', {})

    @pytest.mark.asyncio
    async def test_redis_requires_connect(self):
        store = RedisBuildConfigStore()

        with pytest.raises(RuntimeError):
            await store.get('ns', 'app')
