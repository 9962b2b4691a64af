#!/usr/bin/env python3
"""
Hue Transitions CLI
Expose Philips Hue scenes as switches that fade in over minutes instead of instantly.
"""

import logging
from pathlib import Path

import click

from core.config import CONFIG_FILE, REGISTRY_FILE

from commands.setup import ColouredGroup, discover_command, create_key_command
from commands.scenes import scenes_command, activate_command, test_connection_command
from commands.run import run_command
from commands.switch import switch_command, state_command

LOG_FORMAT = '[%(asctime)s] [%(name)s] %(levelname)s: %(message)s'


@click.group(
    cls=ColouredGroup,
    context_settings={
        'help_option_names': ['-h', '--help'],
        'max_content_width': 999
    }
)
@click.version_option(version='1.0.0', prog_name='Hue Transitions')
@click.option('--config', '-c', 'config_path', type=click.Path(path_type=Path), default=CONFIG_FILE,
              show_default=True, help='Configuration file')
@click.option('--registry', 'registry_path', type=click.Path(path_type=Path), default=REGISTRY_FILE,
              show_default=True, help='Accessory cache file')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path: Path, registry_path: Path, debug: bool):
    """Hue Transitions - Hue scenes as switches with slow transitions.

Turning a scene switch on recalls the scene with its configured
transition (1-60 minutes). The switch stays on while the bridge
reports the scene as active.

Setup: 'discover' to find the bridge, 'create-key' to get an API key,
'scenes' to pick scene IDs, then 'run'. 'switch' and 'state'
operate a single scene switch."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)

    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['registry_path'] = registry_path


# Register setup commands
cli.add_command(discover_command, name='discover')
cli.add_command(create_key_command, name='create-key')

# Register scene commands
cli.add_command(scenes_command, name='scenes')
cli.add_command(activate_command, name='activate')
cli.add_command(test_connection_command, name='test-connection')

# Register platform command
cli.add_command(run_command, name='run')

# Register switch commands
cli.add_command(switch_command, name='switch')
cli.add_command(state_command, name='state')


if __name__ == '__main__':
    cli()
