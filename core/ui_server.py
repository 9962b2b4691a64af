"""Scene listing for the configuration UI.

Given a bridge address and API key (or an auto-discovered address), returns
the bridge's scenes as {id, name} pairs so the user can pick which ones to
expose.
"""

import logging

from core.api import HueApiClient
from core.config import PlatformConfig
from core.errors import DiscoveryError, HueError
from models.types import SceneSummary
from models.utils import first_bridge_address, scene_name

logger = logging.getLogger(__name__)


def get_available_scenes(config: PlatformConfig) -> list[SceneSummary]:
    """List all scenes on the configured (or discovered) bridge.

    Returns an empty list when there is no bridge address or API key, or
    when the bridge can't be queried.
    """
    bridge_ip = config.bridge_ip

    if bridge_ip is None:
        try:
            bridges = HueApiClient.discover_bridges()
        except DiscoveryError as e:
            logger.error("Auto-discovery failed: %s", e)
            return []
        bridge_ip = first_bridge_address(bridges)

    if bridge_ip is None or config.api_key is None:
        return []

    client = HueApiClient(bridge_ip, config.api_key)
    try:
        scenes = client.get_scenes()
    except HueError as e:
        logger.error("Failed to fetch scenes for UI: %s", e)
        return []
    finally:
        client.close()

    return [
        {'id': scene['id'], 'name': scene_name(scene)}
        for scene in scenes
        if isinstance(scene, dict) and scene.get('id')
    ]
