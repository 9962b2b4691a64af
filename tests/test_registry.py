"""Tests for the accessory registry in core/registry.py"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from core.registry import (
    CHAR_NAME,
    CHAR_ON,
    SERVICE_ACCESSORY_INFORMATION,
    SERVICE_COMMUNICATION_FAILURE,
    SERVICE_SWITCH,
    AccessoryRegistry,
    Characteristic,
    CommunicationFailure,
    PlatformAccessory,
    Service,
)


@pytest.fixture
def switch_accessory():
    accessory = PlatformAccessory('Relax', 'uuid-1', {'sceneId': 'scene-1'})
    accessory.add_service(SERVICE_SWITCH)
    return accessory


class TestCharacteristic:
    """Test characteristic values and handlers."""

    def test_handlers_chain(self):
        characteristic = Characteristic(CHAR_ON)
        assert characteristic.on_get(AsyncMock()).on_set(AsyncMock()) is characteristic

    @pytest.mark.asyncio
    async def test_get_without_handler(self):
        characteristic = Characteristic(CHAR_ON, False)
        assert await characteristic.handle_get() is False

    @pytest.mark.asyncio
    async def test_get_with_async_handler(self):
        characteristic = Characteristic(CHAR_ON).on_get(AsyncMock(return_value=True))

        assert await characteristic.handle_get() is True
        assert characteristic.value is True

    @pytest.mark.asyncio
    async def test_get_with_sync_handler(self):
        characteristic = Characteristic(CHAR_ON).on_get(lambda: True)
        assert await characteristic.handle_get() is True

    @pytest.mark.asyncio
    async def test_set_updates_value_before_handler(self):
        seen = []
        characteristic = Characteristic(CHAR_ON, False)

        async def handler(value):
            seen.append(characteristic.value)

        characteristic.on_set(handler)
        await characteristic.handle_set(True)

        assert seen == [True]

    @pytest.mark.asyncio
    async def test_set_handler_failure_propagates(self):
        characteristic = Characteristic(CHAR_ON).on_set(AsyncMock(side_effect=CommunicationFailure()))

        with pytest.raises(CommunicationFailure):
            await characteristic.handle_set(True)

    def test_update_value_skips_handlers(self):
        handler = MagicMock()
        characteristic = Characteristic(CHAR_ON).on_set(handler)

        characteristic.update_value(True)

        assert characteristic.value is True
        handler.assert_not_called()


class TestService:
    """Test service characteristic access."""

    def test_get_characteristic_creates_once(self):
        service = Service(SERVICE_SWITCH)
        assert service.get_characteristic(CHAR_ON) is service.get_characteristic(CHAR_ON)

    def test_set_characteristic_chains(self):
        service = Service(SERVICE_SWITCH)
        assert service.set_characteristic(CHAR_NAME, 'Relax').update_characteristic(CHAR_ON, True) is service
        assert service.get_characteristic(CHAR_NAME).value == 'Relax'
        assert service.get_characteristic(CHAR_ON).value is True


class TestPlatformAccessory:
    """Test accessory construction."""

    def test_information_service_added(self):
        accessory = PlatformAccessory('Relax', 'uuid-1')
        assert accessory.get_service(SERVICE_ACCESSORY_INFORMATION) is not None
        assert accessory.get_service(SERVICE_SWITCH) is None

    def test_context_defaults_to_empty(self):
        assert PlatformAccessory('Relax', 'uuid-1').context == {}

    def test_dict_round_trip(self, switch_accessory):
        restored = PlatformAccessory.from_dict(switch_accessory.to_dict())

        assert restored.uuid == 'uuid-1'
        assert restored.display_name == 'Relax'
        assert restored.context == {'sceneId': 'scene-1'}


class TestCommunicationFailure:
    """Test the communication failure status."""

    def test_default_status(self):
        assert CommunicationFailure().status == SERVICE_COMMUNICATION_FAILURE == -70402


class TestAccessoryRegistry:
    """Test registration and persistence."""

    def test_generate_uuid_deterministic(self):
        first = AccessoryRegistry.generate_uuid('hue-transitions-scene-1')
        second = AccessoryRegistry.generate_uuid('hue-transitions-scene-1')
        other = AccessoryRegistry.generate_uuid('hue-transitions-scene-2')

        assert first == second
        assert first != other

    def test_load_missing_file(self, registry):
        assert registry.load() == []

    def test_register_persists(self, registry, switch_accessory):
        registry.register_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        data = json.loads(registry.path.read_text())
        assert data['accessories'] == [{
            'uuid': 'uuid-1',
            'displayName': 'Relax',
            'context': {'sceneId': 'scene-1'},
            'plugin': 'hue-transitions',
            'platform': 'HueTransitions',
        }]

    def test_load_restores(self, tmp_path, switch_accessory):
        path = tmp_path / 'accessories.json'
        AccessoryRegistry(path).register_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        restored = AccessoryRegistry(path).load()

        assert [a.uuid for a in restored] == ['uuid-1']
        assert restored[0].context == {'sceneId': 'scene-1'}

    def test_load_corrupt_file(self, registry, caplog):
        registry.path.write_text('{not json')

        assert registry.load() == []
        assert 'Failed to load accessory cache' in caplog.text

    def test_load_skips_malformed_entries(self, registry):
        registry.path.write_text(json.dumps({'accessories': [
            {'uuid': 'uuid-1'},
            {'uuid': 'uuid-2', 'displayName': 'Good', 'context': {}},
        ]}))

        assert [a.uuid for a in registry.load()] == ['uuid-2']

    def test_update_persists_context(self, registry, switch_accessory):
        registry.register_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        switch_accessory.context['sceneConfig'] = {'transitionDuration': 10}
        registry.update_platform_accessories([switch_accessory])

        data = json.loads(registry.path.read_text())
        assert data['accessories'][0]['context']['sceneConfig'] == {'transitionDuration': 10}

    def test_unregister(self, registry, switch_accessory):
        registry.register_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        registry.unregister_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        assert registry.get_accessory('uuid-1') is None
        assert json.loads(registry.path.read_text()) == {'accessories': []}

    def test_unregister_other_platform_ignored(self, registry, switch_accessory):
        registry.register_platform_accessories('other-plugin', 'Other', [switch_accessory])

        registry.unregister_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        assert registry.get_accessory('uuid-1') is switch_accessory


class TestRegistryValues:
    """Test reads and writes routed to switch handlers."""

    @pytest.mark.asyncio
    async def test_read_and_write(self, registry, switch_accessory):
        on = switch_accessory.get_service(SERVICE_SWITCH).get_characteristic(CHAR_ON)
        setter = AsyncMock()
        on.on_get(AsyncMock(return_value=True)).on_set(setter)
        registry.register_platform_accessories('hue-transitions', 'HueTransitions', [switch_accessory])

        assert await registry.read_value('uuid-1') is True
        await registry.write_value('uuid-1', False)

        setter.assert_awaited_once_with(False)

    @pytest.mark.asyncio
    async def test_unknown_accessory(self, registry):
        with pytest.raises(KeyError):
            await registry.read_value('missing')

    @pytest.mark.asyncio
    async def test_accessory_without_switch(self, registry):
        accessory = PlatformAccessory('Relax', 'uuid-1')
        registry.register_platform_accessories('hue-transitions', 'HueTransitions', [accessory])

        with pytest.raises(KeyError):
            await registry.write_value('uuid-1', True)
