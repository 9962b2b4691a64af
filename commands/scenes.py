"""
Scene commands.

List the bridge's scenes, recall one with a transition, and check the
connection.
"""

import json

import click

from core.api import HueApiClient
from core.config import MAX_TRANSITION_DURATION, MIN_TRANSITION_DURATION, PlatformConfig, load_config
from core.errors import HueError
from core.ui_server import get_available_scenes


def get_config(ctx) -> PlatformConfig:
    """Load the configuration file selected on the command line."""
    return load_config(ctx.obj['config_path'])


def get_client(config: PlatformConfig) -> HueApiClient | None:
    """Build an API client from the configuration, or explain what's missing."""
    if config.bridge_ip is None or config.api_key is None:
        click.echo("Error: Bridge IP and API key must be configured.", err=True)
        click.echo("Run 'discover' to find your bridge and 'create-key' to get an API key.", err=True)
        return None
    return HueApiClient(config.bridge_ip, config.api_key)


@click.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the list as JSON')
@click.pass_context
def scenes_command(ctx, as_json: bool):
    """List all scenes on the bridge (ID and name).

    Uses auto-discovery when no bridge IP is configured.
    """
    scenes = get_available_scenes(get_config(ctx))

    if as_json:
        click.echo(json.dumps(scenes, indent=2))
        return

    if not scenes:
        click.echo("No scenes found.")
        return

    click.secho(f"=== Scenes ({len(scenes)}) ===", fg='cyan', bold=True)
    for scene in sorted(scenes, key=lambda s: s['name'].lower()):
        click.echo(f"  {scene['name']}  {click.style(scene['id'], dim=True)}")


@click.command()
@click.argument('scene_id')
@click.option('--duration', '-d', type=click.IntRange(MIN_TRANSITION_DURATION, MAX_TRANSITION_DURATION),
              help='Transition duration in minutes (default: instant)')
@click.pass_context
def activate_command(ctx, scene_id: str, duration: int | None):
    """Activate a scene by its ID, optionally with a slow transition.

    \b
    Examples:
      hue-transitions activate 0a1b2c3d-...
      hue-transitions activate 0a1b2c3d-... --duration 30
    """
    client = get_client(get_config(ctx))
    if client is None:
        raise SystemExit(1)

    transition_ms = duration * 60 * 1000 if duration else None

    try:
        client.recall_scene(scene_id, transition_ms)
    except HueError as e:
        click.echo(f"✗ Error activating scene '{scene_id}': {e}", err=True)
        raise SystemExit(1)
    finally:
        client.close()

    if duration:
        click.echo(f"✓ Scene '{scene_id}' activated with {duration} minute transition")
    else:
        click.echo(f"✓ Scene '{scene_id}' activated")


@click.command()
@click.pass_context
def test_connection_command(ctx):
    """Check that the bridge is reachable with the configured key."""
    config = get_config(ctx)
    client = get_client(config)
    if client is None:
        raise SystemExit(1)

    try:
        connected = client.test_connection()
    finally:
        client.close()

    if connected:
        click.secho(f"✓ Connected to Hue Bridge at {config.bridge_ip}", fg='green')
    else:
        click.secho(f"✗ Failed to connect to bridge at {config.bridge_ip}", fg='red', err=True)
        click.echo("Check that the bridge IP and API key are correct.", err=True)
        raise SystemExit(1)
