#!/usr/bin/env python3
"""
CLI for reconciling build configurations and running the controller
"""

import asyncio
import click
import logging
import sys
from typing import Optional

from ..config.buildconfig_loader import BuildConfigLoader
from ..config.controller_factory import create_controller_from_global
from ..config.global_config_loader import GlobalConfig, load_global_config
from ..controller import image_change_trigger_cleared, reconcile_image_change_triggers
from ..core.enums import TriggerMatchMode
from ..core.errors import BuildTriggerError, ConflictError


class ControllerCLI:
    """Command-line interface for the build config controller"""

    def __init__(self, global_config: GlobalConfig):
        self.global_config = global_config
        self.logger = logging.getLogger(__name__)

    async def run_controller(self, manifests: Optional[str], once: bool, workers: Optional[int]) -> int:
        """Load manifests into the store and run the controller"""
        bundle = await create_controller_from_global(self.global_config)
        controller = bundle.controller
        try:
            if manifests:
                for build_config in BuildConfigLoader.load_from_path(manifests):
                    try:
                        await bundle.store.create(build_config)
                    except ConflictError:
                        self.logger.info(f"Build config {build_config.key} already stored")

            for build_config in await bundle.store.list():
                controller.enqueue(build_config)

            worker_count = workers or self.global_config.controller.workers
            if once:
                await controller.run_until_idle(workers=worker_count)
            else:
                await controller.run(workers=worker_count)

            for build_config in await bundle.store.list():
                builds = await controller.builds_for(build_config)
                click.echo(
                    f"{build_config.key}: lastVersion={build_config.status.last_version} "
                    f"builds={len(builds)} "
                    f"imageChangeTriggers={len(build_config.status.image_change_triggers)}"
                )
            return 0
        finally:
            await bundle.close()


@click.group()
@click.option('--global-config', default=None, help='Path to global config YAML')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              help='Set the logging level (overrides global config)')
@click.pass_context
def cli(ctx, global_config, log_level):
    """Build config trigger controller"""
    try:
        global_cfg = load_global_config(global_config)
    except BuildTriggerError as e:
        raise click.ClickException(str(e))

    level = log_level or global_cfg.logging.level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=global_cfg.logging.format,
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    ctx.ensure_object(dict)
    ctx.obj['global_config'] = global_cfg
    ctx.obj['cli'] = ControllerCLI(global_cfg)


@cli.command()
@click.argument('manifest', type=click.Path(exists=True, dir_okay=False))
def reconcile(manifest):
    """Print MANIFEST with its image change trigger status reconciled"""
    try:
        build_config = BuildConfigLoader.load_one(manifest)
    except BuildTriggerError as e:
        raise click.ClickException(str(e))

    click.echo(BuildConfigLoader.dump(reconcile_image_change_triggers(build_config)), nl=False)


@cli.command()
@click.argument('old_manifest', type=click.Path(exists=True, dir_okay=False))
@click.argument('new_manifest', type=click.Path(exists=True, dir_okay=False))
@click.option('--match-by', default=TriggerMatchMode.POSITION.value,
              type=click.Choice([mode.value for mode in TriggerMatchMode]),
              help='Pair triggers by list position or by tracked image')
def cleared(old_manifest, new_manifest, match_by):
    """Exit 0 if an image change trigger was cleared between two manifests"""
    try:
        old = BuildConfigLoader.load_one(old_manifest)
        current = BuildConfigLoader.load_one(new_manifest)
    except BuildTriggerError as e:
        raise click.ClickException(str(e))

    result = image_change_trigger_cleared(old, current, match_by=match_by)
    click.echo("true" if result else "false")
    sys.exit(0 if result else 1)


@cli.command()
@click.option('--manifests', type=click.Path(exists=True), help='BuildConfig manifest file or directory')
@click.option('--once', is_flag=True, help='Exit once the work queue is drained')
@click.option('--workers', type=int, default=None, help='Number of workers (overrides global config)')
@click.pass_context
def run(ctx, manifests, once, workers):
    """Run the build config controller"""
    cli_instance = ctx.obj['cli']
    try:
        return_code = asyncio.run(cli_instance.run_controller(manifests, once, workers))
    except KeyboardInterrupt:
        click.echo("\nController stopped by user")
        return_code = 0
    except BuildTriggerError as e:
        click.echo(f"Error: {e}", err=True)
        return_code = 1
    sys.exit(return_code or 0)


if __name__ == "__main__":
    cli()
