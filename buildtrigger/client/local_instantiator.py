import logging

from ..controller.interfaces import BuildInstantiator
from ..core.models import Build, BuildRequest, BUILD_CONFIG_LABEL
from ..store.base import BaseBuildStore


class LocalBuildInstantiator(BuildInstantiator):
    """
    Instantiates builds directly against a build store.

    Plays the part of the execution engine for local runs: each request
    bumps status.last_version of the configuration and records a build named
    ``<config>-<version>``. The version bump is a conflict-checked write, so
    two concurrent requests cannot produce the same build number.
    """

    def __init__(self, store: BaseBuildStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    async def instantiate(self, request: BuildRequest) -> Build:
        build_config = await self.store.get(request.namespace, request.name)

        number = build_config.status.last_version + 1
        build_config.status.last_version = number
        await self.store.update(build_config)

        build = Build(
            name=f"{request.name}-{number}",
            namespace=request.namespace,
            config_name=request.name,
            number=number,
            labels={BUILD_CONFIG_LABEL: request.name},
            triggered_by=list(request.triggered_by)
        )
        await self.store.add_build(build)

        self.logger.info(f"Created build {build.namespace}/{build.name}")
        return build
