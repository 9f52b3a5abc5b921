"""
Factory functions for wiring a BuildConfigController from global configuration.
"""
import logging
from dataclasses import dataclass

from ..client import HttpBuildInstantiator, LocalBuildInstantiator
from ..controller import BuildConfigController, BuildInstantiator, RateLimitedQueue
from ..store import BaseBuildStore, StoreBuildLister, get_build_store
from .global_config_loader import GlobalConfig


@dataclass
class ControllerBundle:
    """A controller together with the resources it was built from"""
    controller: BuildConfigController
    store: BaseBuildStore
    instantiator: BuildInstantiator

    async def close(self):
        if isinstance(self.instantiator, HttpBuildInstantiator):
            await self.instantiator.close()
        await self.store.disconnect()


def create_instantiator(global_config: GlobalConfig, store: BaseBuildStore) -> BuildInstantiator:
    config = global_config.instantiator
    if config.type == 'http':
        return HttpBuildInstantiator(
            base_url=config.base_url,
            timeout=config.timeout,
            headers=config.headers
        )
    return LocalBuildInstantiator(store)


async def create_controller_from_global(global_config: GlobalConfig) -> ControllerBundle:
    """
    Create a connected store, an instantiator and a controller subscribed to
    the store's change events.
    """
    logger = logging.getLogger(__name__)

    store_config = global_config.store
    store = get_build_store(store_config.type, {
        'url': store_config.url,
        'key_prefix': store_config.key_prefix,
        'max_connections': store_config.max_connections,
    })
    await store.connect()

    instantiator = create_instantiator(global_config, store)

    controller_config = global_config.controller
    controller = BuildConfigController(
        build_config_lister=store,
        build_lister=StoreBuildLister(store),
        build_config_updater=store,
        build_instantiator=instantiator,
        queue=RateLimitedQueue(
            base_delay=controller_config.base_delay,
            max_delay=controller_config.max_delay
        ),
        max_retries=controller_config.max_retries
    )
    store.add_event_handler(controller)

    logger.info(
        f"Created build config controller (store={store_config.type}, "
        f"instantiator={global_config.instantiator.type})"
    )
    return ControllerBundle(controller=controller, store=store, instantiator=instantiator)
