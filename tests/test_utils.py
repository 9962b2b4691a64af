"""Tests for utility functions in models/utils.py and models/types.py"""

import pytest
from models.types import SceneConfig
from models.utils import clamp, first_bridge_address, is_scene_active, scene_name, suggest_commands
from conftest import make_scene


class TestIsSceneActive:
    """Tests for is_scene_active function."""

    @pytest.mark.parametrize('status', ['static', 'dynamic_palette'])
    def test_active_statuses(self, status):
        assert is_scene_active(make_scene('scene-1', active=status)) is True

    def test_inactive(self):
        assert is_scene_active(make_scene('scene-1', active='inactive')) is False

    def test_missing_status(self):
        """Older firmware omits status entirely."""
        assert is_scene_active(make_scene('scene-1', active=None)) is False

    def test_null_status(self):
        assert is_scene_active({'id': 'scene-1', 'status': None}) is False

    def test_unknown_status(self):
        assert is_scene_active(make_scene('scene-1', active='something_new')) is False


class TestSceneName:
    """Tests for scene_name function."""

    def test_name_from_metadata(self):
        assert scene_name(make_scene('scene-1', 'Relax')) == 'Relax'

    def test_missing_metadata(self):
        assert scene_name({'id': 'scene-1'}) == 'Unknown'


class TestFirstBridgeAddress:
    """Tests for first_bridge_address function."""

    def test_first_candidate(self):
        bridges = [
            {'id': 'bridge-1', 'internalipaddress': '192.168.1.100'},
            {'id': 'bridge-2', 'internalipaddress': '192.168.1.101'},
        ]
        assert first_bridge_address(bridges) == '192.168.1.100'

    def test_malformed_entries_skipped(self):
        bridges = [{'id': 'bridge-1'}, 'garbage', {'internalipaddress': ''}, {'internalipaddress': '10.0.0.5'}]
        assert first_bridge_address(bridges) == '10.0.0.5'

    @pytest.mark.parametrize('bridges', [[], None, [{'id': 'bridge-1'}]])
    def test_no_address(self, bridges):
        assert first_bridge_address(bridges) is None


class TestClamp:
    """Tests for clamp function."""

    def test_in_range(self):
        assert clamp(30, 1, 60) == 30

    def test_below(self):
        assert clamp(0, 1, 60) == 1

    def test_above(self):
        assert clamp(90, 1, 60) == 60

    def test_bounds_inclusive(self):
        assert clamp(1, 1, 60) == 1
        assert clamp(60, 1, 60) == 60


class TestSuggestCommands:
    """Tests for suggest_commands function."""

    COMMANDS = ['activate', 'create-key', 'discover', 'run', 'scenes', 'state', 'switch', 'test-connection']

    def test_prefix_first(self):
        assert suggest_commands('scene', self.COMMANDS)[0] == 'scenes'

    def test_case_insensitive(self):
        assert suggest_commands('ACT', self.COMMANDS)[0] == 'activate'

    def test_fuzzy_match(self):
        assert 'discover' in suggest_commands('discovr', self.COMMANDS)

    def test_limit(self):
        assert len(suggest_commands('s', self.COMMANDS, limit=2)) == 2

    def test_no_match(self):
        assert suggest_commands('xyz', self.COMMANDS) == []

    def test_empty_name(self):
        assert suggest_commands('', self.COMMANDS) == []


class TestSceneConfig:
    """Tests for the SceneConfig dataclass."""

    @pytest.mark.parametrize('minutes,expected_ms', [
        (1, 60000),
        (30, 1800000),
        (60, 3600000),
    ])
    def test_transition_ms(self, minutes, expected_ms):
        scene = SceneConfig(id='scene-1', name='Relax', transition_duration=minutes)
        assert scene.transition_ms == expected_ms

    def test_to_dict(self, scene_config):
        assert scene_config.to_dict() == {'id': 'scene-1', 'name': 'Test Scene 1', 'transitionDuration': 30}

    def test_frozen(self, scene_config):
        with pytest.raises(AttributeError):
            scene_config.name = 'Changed'
