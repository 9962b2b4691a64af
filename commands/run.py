"""
Run command: host the scene switches until interrupted.
"""

import asyncio
import logging
import signal

import click

from core.config import PlatformConfig, load_config
from core.platform import HueTransitionsPlatform
from core.registry import AccessoryRegistry

logger = logging.getLogger(__name__)


async def launch_platform(config: PlatformConfig, registry: AccessoryRegistry) -> HueTransitionsPlatform:
    """Restore cached accessories into a new platform and launch it."""
    platform = HueTransitionsPlatform(config, registry)

    for accessory in registry.load():
        platform.configure_accessory(accessory)

    await platform.did_finish_launching()
    return platform


async def run_platform(config: PlatformConfig, registry: AccessoryRegistry,
                       stop_event: asyncio.Event | None = None,
                       install_signal_handlers: bool = True) -> HueTransitionsPlatform:
    """Launch the platform and keep it running until stop_event is set."""
    if stop_event is None:
        stop_event = asyncio.Event()

    if install_signal_handlers:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

    platform = await launch_platform(config, registry)

    try:
        await stop_event.wait()
    finally:
        platform.shutdown()

    return platform


@click.command()
@click.pass_context
def run_command(ctx):
    """Expose configured scenes as switches and poll the bridge (Ctrl+C to stop)."""
    config = load_config(ctx.obj['config_path'])

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    registry = AccessoryRegistry(ctx.obj['registry_path'])

    click.echo(f"Starting {config.name} with {len(config.scenes)} configured scene(s)...")
    asyncio.run(run_platform(config, registry))
    click.echo("Stopped.")
