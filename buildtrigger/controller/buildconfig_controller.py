"""
Build config controller.

Keeps image change trigger status in sync with the declared triggers and
starts the first build of configurations that carry a config change trigger.
"""
import asyncio
import logging
from typing import List, Optional

from ..core.enums import BuildTriggerType
from ..core.errors import ConfigurationError, NotFoundError
from ..core.models import BuildConfig, Build, BuildRequest, BUILD_CONFIG_LABEL
from .interfaces import BuildConfigLister, BuildLister, BuildConfigUpdater, BuildInstantiator
from .trigger_reconciler import (
    reconcile_image_change_triggers,
    image_change_trigger_statuses_equal
)
from .trigger_cleared import image_change_trigger_cleared
from .work_queue import RateLimitedQueue


CONFIG_CHANGE_CAUSE = "Build configuration change"
DEFAULT_MAX_RETRIES = 15


class BuildConfigController:
    """
    Reconciles build configurations one key at a time.

    All collaborators are injected; the controller holds no state besides its
    work queue. Errors are never retried inside a pass: handle_err() requeues
    the key with backoff until max_retries is reached.
    """

    def __init__(
        self,
        build_config_lister: BuildConfigLister,
        build_lister: BuildLister,
        build_config_updater: BuildConfigUpdater,
        build_instantiator: BuildInstantiator,
        queue: Optional[RateLimitedQueue] = None,
        max_retries: int = DEFAULT_MAX_RETRIES
    ):
        """
        Initialize build config controller.

        Args:
            build_config_lister: Source of authoritative build configurations
            build_lister: Source of existing builds
            build_config_updater: Persists reconciled trigger status
            build_instantiator: Creates builds
            queue: Work queue, a default RateLimitedQueue if omitted
            max_retries: Requeues allowed for a failing key before it is dropped
        """
        self.build_config_lister = build_config_lister
        self.build_lister = build_lister
        self.build_config_updater = build_config_updater
        self.build_instantiator = build_instantiator
        self.queue = queue if queue is not None else RateLimitedQueue()
        self.max_retries = max_retries
        self.logger = logging.getLogger(__name__)

    # Event handlers

    def on_add(self, build_config: BuildConfig):
        self.enqueue(build_config)

    def on_update(self, old: Optional[BuildConfig], current: BuildConfig):
        if image_change_trigger_cleared(old, current):
            # Skip the backoff so the reset state is reconciled right away
            self.logger.info(
                f"Image change trigger cleared for {current.key}, reconciling immediately"
            )
            self.queue.forget(current.key)
        self.enqueue(current)

    def on_delete(self, build_config: BuildConfig):
        self.logger.debug(f"Build config deleted: {build_config.key}")
        self.queue.forget(build_config.key)

    def enqueue(self, build_config: BuildConfig):
        self.queue.add(build_config.key)

    # Reconciliation

    async def handle_build_config(self, build_config: Optional[BuildConfig]):
        """
        Run one reconcile pass for a build configuration.

        1. Rebuild status.image_change_triggers and persist it if it changed.
        2. Instantiate a build if a config change trigger is present and no
           build was ever created (status.last_version == 0).

        A None build_config is a no-op. Errors from the updater or the
        instantiator propagate unchanged.
        """
        if build_config is None:
            return

        self.logger.debug(f"Handling build config {build_config.key}")

        reconciled = reconcile_image_change_triggers(build_config)
        if not image_change_trigger_statuses_equal(
            build_config.status.image_change_triggers,
            reconciled.status.image_change_triggers
        ):
            reconciled = await self.build_config_updater.update_trigger_status(reconciled)
            self.logger.info(
                f"Updated image change trigger status for {build_config.key} "
                f"({len(reconciled.status.image_change_triggers)} trigger(s))"
            )

        if not self._needs_config_change_build(reconciled):
            return

        request = BuildRequest(
            name=reconciled.name,
            namespace=reconciled.namespace,
            triggered_by=[CONFIG_CHANGE_CAUSE]
        )
        try:
            build = await self.build_instantiator.instantiate(request)
        except Exception as e:
            self.logger.warning(
                f"BuildConfigInstantiateFailed: {reconciled.key}: error instantiating build: {e}"
            )
            raise

        self.logger.info(
            f"Started build {build.name if build else '<unknown>'} for {reconciled.key} "
            f"on config change"
        )

    def _needs_config_change_build(self, build_config: BuildConfig) -> bool:
        if not build_config.spec.has_trigger(BuildTriggerType.CONFIG_CHANGE):
            return False
        if build_config.status.last_version != 0:
            self.logger.debug(
                f"Build config {build_config.key} already has builds "
                f"(last version {build_config.status.last_version}), "
                f"skipping config change trigger"
            )
            return False
        return True

    async def builds_for(self, build_config: BuildConfig) -> List[Build]:
        """Builds created from a build configuration"""
        return await self.build_lister.list(
            build_config.namespace,
            {BUILD_CONFIG_LABEL: build_config.name}
        )

    # Work loop

    async def process_next(self, key: str):
        """Re-read the build configuration behind key and reconcile it"""
        namespace, name = split_key(key)
        try:
            build_config = await self.build_config_lister.get(namespace, name)
        except NotFoundError:
            self.logger.debug(f"Build config {key} no longer exists, nothing to do")
            return

        await self.handle_build_config(build_config)

    def handle_err(self, key: str, err: Optional[BaseException]):
        """Forget a key on success, requeue it with backoff on failure"""
        if err is None:
            self.queue.forget(key)
            return

        if isinstance(err, ConfigurationError):
            self.logger.error(f"Invalid build config {key}, not retrying: {err}")
            self.queue.forget(key)
            return

        if self.queue.num_requeues(key) < self.max_retries:
            self.logger.info(f"Retrying build config {key}: {err}")
            self.queue.add_rate_limited(key)
            return

        self.logger.error(
            f"Giving up on build config {key} after {self.max_retries} retries: {err}"
        )
        self.queue.forget(key)

    async def _worker(self, worker_id: int):
        self.logger.debug(f"Worker {worker_id} started")
        while True:
            key = await self.queue.get()
            if key is None:
                break
            try:
                await self.process_next(key)
                self.handle_err(key, None)
            except Exception as e:
                self.handle_err(key, e)
            finally:
                self.queue.done(key)
        self.logger.debug(f"Worker {worker_id} stopped")

    async def run(self, workers: int = 1):
        """Process keys with the given number of workers until shutdown()"""
        self.logger.info(f"Starting build config controller with {workers} worker(s)")
        tasks = [asyncio.create_task(self._worker(i)) for i in range(workers)]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
        self.logger.info("Build config controller stopped")

    async def run_until_idle(self, workers: int = 1, poll_interval: float = 0.01):
        """Run until the queue has nothing queued, in flight or delayed"""
        runner = asyncio.create_task(self.run(workers))
        try:
            while not self.queue.is_idle():
                await asyncio.sleep(poll_interval)
        finally:
            self.shutdown()
            await runner

    def shutdown(self):
        self.queue.shut_down()


def split_key(key: str):
    """Split a ``namespace/name`` queue key"""
    if "/" not in key:
        return "default", key
    namespace, name = key.split("/", 1)
    return namespace, name
