"""Pytest configuration and fixtures for Hue Transitions tests."""

import pytest
from pathlib import Path
from unittest.mock import MagicMock

import requests

from core.config import PlatformConfig
from core.registry import AccessoryRegistry
from models.types import SceneConfig


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def scene_config():
    """A configured scene with a 30 minute transition."""
    return SceneConfig(id='scene-1', name='Test Scene 1', transition_duration=30)


@pytest.fixture
def platform_config():
    """Platform configuration with two scenes and a known bridge."""
    return PlatformConfig(
        name='Test Platform',
        bridge_ip='192.168.1.100',
        api_key='test-api-key',
        scenes=[
            SceneConfig(id='scene-1', name='Test Scene 1', transition_duration=30),
            SceneConfig(id='scene-2', name='Test Scene 2', transition_duration=15),
        ],
        polling_interval=60000,
        debug=False,
    )


@pytest.fixture
def registry(tmp_path):
    """Accessory registry persisted under a temporary directory."""
    return AccessoryRegistry(tmp_path / 'accessories.json')


def make_scene(scene_id: str, name: str = 'Scene', active: str | None = 'inactive') -> dict:
    """Build a v2 scene resource."""
    scene = {
        'id': scene_id,
        'type': 'scene',
        'metadata': {'name': name},
        'group': {'rid': 'room-1', 'rtype': 'room'},
        'actions': [],
    }
    if active is not None:
        scene['status'] = {'active': active}
    return scene


def make_response(status_code: int = 200, json_data=None) -> MagicMock:
    """Build a mock requests.Response.

    raise_for_status() raises an HTTPError carrying the response for 4xx/5xx.
    """
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {'errors': [], 'data': []}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response
