"""
Switch commands: drive one scene switch through the accessory registry.

Both commands launch the platform (bridge connection, accessory
registration), operate the switch the same way the smart-home host would,
and shut the platform down again.
"""

import asyncio

import click

from commands.run import launch_platform
from core.config import PLUGIN_NAME, PlatformConfig, load_config
from core.registry import AccessoryRegistry, CommunicationFailure


async def drive_switch(config: PlatformConfig, registry: AccessoryRegistry,
                       scene_id: str, value: bool | None = None) -> bool:
    """Optionally write a scene switch, then read it back.

    Raises:
        click.ClickException: The scene has no switch (not configured, or the
            bridge could not be reached)
        CommunicationFailure: The switch's handler could not reach the bridge
    """
    platform = await launch_platform(config, registry)

    try:
        uuid = registry.generate_uuid(f"{PLUGIN_NAME}-{scene_id}")
        if uuid not in platform.accessory_instances:
            raise click.ClickException(
                f"No switch for scene '{scene_id}' - check that it is configured and the bridge is reachable"
            )

        if value is not None:
            await registry.write_value(uuid, value)

        return await registry.read_value(uuid)
    finally:
        platform.shutdown()


def _load(ctx) -> tuple[PlatformConfig, AccessoryRegistry]:
    return load_config(ctx.obj['config_path']), AccessoryRegistry(ctx.obj['registry_path'])


@click.command()
@click.argument('scene_id')
@click.argument('state', type=click.Choice(['on', 'off'], case_sensitive=False))
@click.pass_context
def switch_command(ctx, scene_id: str, state: str):
    """Turn a configured scene's switch on (recall with its transition) or off.

    \b
    Examples:
      hue-transitions switch 0a1b2c3d-... on
    """
    config, registry = _load(ctx)
    turn_on = state.lower() == 'on'

    try:
        is_on = asyncio.run(drive_switch(config, registry, scene_id, turn_on))
    except CommunicationFailure as e:
        click.secho(f"✗ Failed to switch scene '{scene_id}' {state}: {e.__cause__ or e}", fg='red', err=True)
        raise SystemExit(1)

    if turn_on:
        scene = next(s for s in config.scenes if s.id == scene_id)
        click.secho(f"✓ Scene '{scene.name}' switched on ({scene.transition_duration} minute transition)", fg='green')
    else:
        click.echo(f"Scene '{scene_id}' switch is now {'on' if is_on else 'off'}")


@click.command()
@click.argument('scene_id')
@click.pass_context
def state_command(ctx, scene_id: str):
    """Show whether a configured scene's switch is on."""
    config, registry = _load(ctx)

    try:
        is_on = asyncio.run(drive_switch(config, registry, scene_id))
    except CommunicationFailure as e:
        click.secho(f"✗ Failed to read scene '{scene_id}': {e.__cause__ or e}", fg='red', err=True)
        raise SystemExit(1)

    label = click.style('on', fg='green') if is_on else click.style('off', dim=True)
    click.echo(f"Scene '{scene_id}' is {label}")
