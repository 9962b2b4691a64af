"""Configuration management.

This module handles:
- Constants for the bridge API, polling and transitions
- Loading/saving the platform configuration file
- Normalising scene entries into SceneConfig objects
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from models.types import SceneConfig
from models.utils import clamp

logger = logging.getLogger(__name__)

PLATFORM_NAME = 'HueTransitions'
PLUGIN_NAME = 'hue-transitions'

# Configuration file paths
CONFIG_FILE = Path.home() / '.hue_transitions' / 'config.json'
REGISTRY_FILE = Path.home() / '.hue_transitions' / 'accessories.json'

# Bridge API
DISCOVERY_URL = 'https://discovery.meethue.com'
API_VERSION = 'v2'
REQUEST_TIMEOUT = 10  # seconds
MAX_RETRIES = 3

# Polling (milliseconds)
DEFAULT_POLLING_INTERVAL = 60000
MIN_POLLING_INTERVAL = 60000
MAX_POLLING_INTERVAL = 300000

# Transitions (minutes)
DEFAULT_TRANSITION_DURATION = 30
MIN_TRANSITION_DURATION = 1
MAX_TRANSITION_DURATION = 60

# A switch reads as on for this long after we trigger it (milliseconds)
RECENT_ACTIVATION_WINDOW = 30000


@dataclass
class PlatformConfig:
    """Parsed platform configuration.

    bridge_ip and api_key are None when unset; the bootstrap branches on that.
    """
    name: str = PLATFORM_NAME
    bridge_ip: str | None = None
    api_key: str | None = None
    scenes: list[SceneConfig] = field(default_factory=list)
    polling_interval: int = DEFAULT_POLLING_INTERVAL
    debug: bool = False

    @classmethod
    def from_dict(cls, raw: dict) -> 'PlatformConfig':
        """Build a PlatformConfig from a raw (JSON) mapping.

        Accepts both snake_case and the camelCase keys used by the
        configuration UI. Incomplete scene entries are dropped.
        """
        scenes_raw = raw.get('scenes')
        if not isinstance(scenes_raw, list):
            scenes_raw = []

        scenes = []
        for entry in scenes_raw:
            scene = parse_scene_config(entry)
            if scene is not None:
                scenes.append(scene)

        polling_interval = raw.get('pollingInterval', raw.get('polling_interval'))
        if polling_interval is None:
            polling_interval = DEFAULT_POLLING_INTERVAL

        return cls(
            name=raw.get('name') or PLATFORM_NAME,
            bridge_ip=raw.get('bridgeIp', raw.get('bridge_ip')) or None,
            api_key=raw.get('apiKey', raw.get('api_key')) or None,
            scenes=scenes,
            polling_interval=int(polling_interval),
            debug=bool(raw.get('debug', False)),
        )

    def to_dict(self) -> dict:
        data = {
            'platform': PLATFORM_NAME,
            'name': self.name,
            'scenes': [s.to_dict() for s in self.scenes],
            'pollingInterval': self.polling_interval,
            'debug': self.debug,
        }
        if self.bridge_ip is not None:
            data['bridgeIp'] = self.bridge_ip
        if self.api_key is not None:
            data['apiKey'] = self.api_key
        return data


def parse_scene_config(entry) -> SceneConfig | None:
    """Turn one raw scene entry into a SceneConfig.

    Returns None for entries without an id or name. Transition durations
    outside 1-60 minutes are clamped (with a warning); missing or
    non-numeric durations fall back to the default.
    """
    if not isinstance(entry, dict):
        return None

    scene_id = entry.get('id')
    name = entry.get('name')
    if not scene_id or not name:
        return None

    duration = entry.get('transitionDuration', entry.get('transition_duration'))
    try:
        duration = int(duration)
    except (TypeError, ValueError):
        duration = DEFAULT_TRANSITION_DURATION

    valid_duration = clamp(duration, MIN_TRANSITION_DURATION, MAX_TRANSITION_DURATION)
    if valid_duration != duration:
        logger.warning(
            "Transition duration %s for scene \"%s\" is outside valid range (%s-%s minutes), using %s",
            duration, name, MIN_TRANSITION_DURATION, MAX_TRANSITION_DURATION, valid_duration,
        )

    return SceneConfig(id=str(scene_id), name=str(name), transition_duration=valid_duration)


def load_config(path: Path = CONFIG_FILE) -> PlatformConfig:
    """Load the platform configuration from a JSON file.

    A missing file yields the default (empty) configuration. The file may
    hold either the platform block itself or a Homebridge-style document
    with a 'platforms' list; in the latter case the HueTransitions entry is used.
    """
    if not path.exists():
        logger.debug("No configuration file at %s, using defaults", path)
        return PlatformConfig()

    with open(path, 'r') as f:
        raw = json.load(f)

    if isinstance(raw, dict) and isinstance(raw.get('platforms'), list):
        for platform in raw['platforms']:
            if isinstance(platform, dict) and platform.get('platform') == PLATFORM_NAME:
                raw = platform
                break
        else:
            raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration in {path} must be a JSON object")

    return PlatformConfig.from_dict(raw)


def save_config(config: PlatformConfig, path: Path = CONFIG_FILE):
    """Save configuration to file.

    Creates the directory if needed and restricts the file to the owner,
    since it holds the API key.

    Args:
        config: Configuration to save
        path: Destination file
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    os.chmod(path, 0o600)
