"""
Setup commands for Hue Transitions CLI.

Contains the custom Click group class (coloured help, typo suggestions) and
the bridge discovery / API key commands.
"""

import click

from core.api import HueApiClient
from core.config import PLUGIN_NAME, load_config, save_config
from core.errors import DiscoveryError, HueError, LinkButtonError
from models.utils import suggest_commands


class ColouredGroup(click.Group):
    """Click group with a coloured command list and "did you mean" hints."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            name = args[0] if args else ''
            visible = [c for c in self.list_commands(ctx) if not self.get_command(ctx, c).hidden]
            suggestions = suggest_commands(name, visible) if 'No such command' in str(e) else []
            if not suggestions:
                raise

            hint = click.style("Did you mean one of these?", fg='yellow')
            options = ''.join(click.style(f"\n  • {s}", fg='green') for s in suggestions)
            raise click.UsageError(f"No such command '{name}'.\n\n{hint}{options}", ctx) from e

    def format_commands(self, ctx, formatter):
        rows = [(name, self.get_command(ctx, name)) for name in self.list_commands(ctx)]
        rows = [(name, cmd.get_short_help_str(limit=500)) for name, cmd in rows if cmd and not cmd.hidden]
        if not rows:
            return

        width = max(20, *(len(name) for name, _ in rows))
        formatter.write_paragraph()
        formatter.write_text(click.style('Commands:', fg='yellow', bold=True))
        with formatter.indentation():
            for name, help_text in rows:
                formatter.write_text(f"{click.style(name.ljust(width), fg='green')}  {click.style(help_text, dim=True)}")


@click.command()
def discover_command():
    """Find Hue bridges on your network.

    Uses the Philips discovery service (discovery.meethue.com).
    """
    click.echo("Discovering Hue bridges...")

    try:
        bridges = HueApiClient.discover_bridges()
    except DiscoveryError as e:
        click.secho(f"✗ {e}", fg='red', err=True)
        raise SystemExit(1)

    if not bridges:
        click.secho("⚠ No bridges found via automatic discovery", fg='yellow')
        click.echo("You can enter your bridge IP manually in the configuration instead.")
        return

    click.secho(f"Found {len(bridges)} Hue bridge{'s' if len(bridges) > 1 else ''}:", fg='cyan', bold=True)
    for i, bridge in enumerate(bridges, 1):
        ip = bridge.get('internalipaddress', 'Unknown')
        port = bridge.get('port')
        address = f"{ip}:{port}" if port else ip
        click.echo(f"  {click.style(str(i), fg='green', bold=True)}. {address} (ID: {bridge.get('id', 'Unknown')})")


@click.command()
@click.argument('bridge_ip')
@click.option('--app-name', default=PLUGIN_NAME, show_default=True, help='Application part of the devicetype')
@click.option('--device-name', default='python', show_default=True, help='Device part of the devicetype')
@click.option('--save', is_flag=True, help='Store bridge IP and key in the configuration file')
@click.pass_context
def create_key_command(ctx, bridge_ip: str, app_name: str, device_name: str, save: bool):
    """Create an API key (press the bridge's link button first).

    \b
    Examples:
      hue-transitions create-key 192.168.1.10
      hue-transitions create-key 192.168.1.10 --save
    """
    try:
        api_key = HueApiClient.create_api_key(bridge_ip, app_name, device_name)
    except LinkButtonError as e:
        click.secho(f"✗ {e}", fg='red', err=True)
        click.echo("Press the link button on your Hue bridge, then run this command within 30 seconds.")
        raise SystemExit(1)
    except HueError as e:
        click.secho(f"✗ Failed to create API key: {e}", fg='red', err=True)
        raise SystemExit(1)

    click.secho("✓ Successfully created API key!", fg='green', bold=True)
    click.echo(api_key)

    if save:
        config_path = ctx.obj['config_path']
        config = load_config(config_path)
        config.bridge_ip = bridge_ip
        config.api_key = api_key
        save_config(config, config_path)
        click.secho(f"✓ Configuration saved to {config_path}", fg='green')
