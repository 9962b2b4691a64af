"""Local device registry for scene switches.

The smart-home host owns accessories and their characteristics; this module
is the registry the platform talks to. It keeps accessory registrations in a
JSON file so they survive restarts, and routes characteristic reads/writes to
the handlers an accessory registers.
"""

import inspect
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable

from core.config import REGISTRY_FILE

logger = logging.getLogger(__name__)

# Service types
SERVICE_ACCESSORY_INFORMATION = 'AccessoryInformation'
SERVICE_SWITCH = 'Switch'

# Characteristic types
CHAR_MANUFACTURER = 'Manufacturer'
CHAR_MODEL = 'Model'
CHAR_SERIAL_NUMBER = 'SerialNumber'
CHAR_NAME = 'Name'
CHAR_ON = 'On'

# HAP status code reported when an accessory can't reach its device
SERVICE_COMMUNICATION_FAILURE = -70402

UUID_NAMESPACE = uuid.NAMESPACE_OID


class CommunicationFailure(Exception):
    """Raised from a characteristic handler when the device can't be reached."""

    def __init__(self, status: int = SERVICE_COMMUNICATION_FAILURE):
        self.status = status
        super().__init__(f"Service communication failure ({status})")


GetHandler = Callable[[], Awaitable[Any]]
SetHandler = Callable[[Any], Awaitable[None]]


class Characteristic:
    """A single value on a service, optionally backed by get/set handlers."""

    def __init__(self, name: str, value: Any = None):
        self.name = name
        self.value = value
        self._get_handler: GetHandler | None = None
        self._set_handler: SetHandler | None = None

    def on_get(self, handler: GetHandler) -> 'Characteristic':
        self._get_handler = handler
        return self

    def on_set(self, handler: SetHandler) -> 'Characteristic':
        self._set_handler = handler
        return self

    def update_value(self, value: Any):
        """Push a new value without going through the handlers."""
        self.value = value

    async def handle_get(self) -> Any:
        """Read the value through the get handler, if any."""
        if self._get_handler is not None:
            value = self._get_handler()
            if inspect.isawaitable(value):
                value = await value
            self.value = value
        return self.value

    async def handle_set(self, value: Any):
        """Write the value through the set handler.

        The displayed value changes immediately; the handler may later revert it.
        """
        self.value = value
        if self._set_handler is not None:
            result = self._set_handler(value)
            if inspect.isawaitable(result):
                await result


class Service:
    """A named group of characteristics (e.g. a switch)."""

    def __init__(self, service_type: str):
        self.service_type = service_type
        self.characteristics: dict[str, Characteristic] = {}

    def get_characteristic(self, name: str) -> Characteristic:
        if name not in self.characteristics:
            self.characteristics[name] = Characteristic(name)
        return self.characteristics[name]

    def set_characteristic(self, name: str, value: Any) -> 'Service':
        self.get_characteristic(name).update_value(value)
        return self

    def update_characteristic(self, name: str, value: Any) -> 'Service':
        self.get_characteristic(name).update_value(value)
        return self


class PlatformAccessory:
    """An accessory owned by the registry, with free-form persisted context."""

    def __init__(self, display_name: str, uuid: str, context: dict | None = None):
        self.display_name = display_name
        self.uuid = uuid
        self.context: dict = context if context is not None else {}
        self.services: dict[str, Service] = {}
        self.add_service(SERVICE_ACCESSORY_INFORMATION)

    def get_service(self, service_type: str) -> Service | None:
        return self.services.get(service_type)

    def add_service(self, service_type: str) -> Service:
        service = Service(service_type)
        self.services[service_type] = service
        return service

    def to_dict(self) -> dict:
        return {
            'uuid': self.uuid,
            'displayName': self.display_name,
            'context': self.context,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PlatformAccessory':
        return cls(data['displayName'], data['uuid'], dict(data.get('context') or {}))


class AccessoryRegistry:
    """Registry of platform accessories, persisted to a JSON file.

    Each entry is keyed by accessory UUID and remembers the plugin/platform
    pair it was registered under.
    """

    def __init__(self, path: Path = REGISTRY_FILE):
        self.path = path
        self._entries: dict[str, tuple[str, str, PlatformAccessory]] = {}

    @staticmethod
    def generate_uuid(text: str) -> str:
        """Deterministic UUID for a string (the same input always maps to the same UUID)."""
        return str(uuid.uuid5(UUID_NAMESPACE, text))

    def load(self) -> list[PlatformAccessory]:
        """Restore accessories persisted by a previous run.

        Returns:
            The restored accessories, in the order they were saved
        """
        self._entries = {}
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load accessory cache from %s: %s", self.path, e)
            return []

        for entry in data.get('accessories', []):
            try:
                accessory = PlatformAccessory.from_dict(entry)
            except (KeyError, TypeError) as e:
                logger.warning("Skipping malformed cached accessory %r: %s", entry, e)
                continue
            self._entries[accessory.uuid] = (entry.get('plugin', ''), entry.get('platform', ''), accessory)

        return self.cached_accessories()

    def save(self):
        """Write all registrations to the cache file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        accessories = []
        for plugin, platform, accessory in self._entries.values():
            entry = accessory.to_dict()
            entry['plugin'] = plugin
            entry['platform'] = platform
            accessories.append(entry)

        with open(self.path, 'w') as f:
            json.dump({'accessories': accessories}, f, indent=2)

    def cached_accessories(self) -> list[PlatformAccessory]:
        return [accessory for _, _, accessory in self._entries.values()]

    def get_accessory(self, accessory_uuid: str) -> PlatformAccessory | None:
        entry = self._entries.get(accessory_uuid)
        return entry[2] if entry else None

    def register_platform_accessories(self, plugin: str, platform: str, accessories: list[PlatformAccessory]):
        for accessory in accessories:
            self._entries[accessory.uuid] = (plugin, platform, accessory)
        self.save()

    def update_platform_accessories(self, accessories: list[PlatformAccessory]):
        """Persist context changes of already-registered accessories."""
        for accessory in accessories:
            entry = self._entries.get(accessory.uuid)
            if entry:
                self._entries[accessory.uuid] = (entry[0], entry[1], accessory)
        self.save()

    def unregister_platform_accessories(self, plugin: str, platform: str, accessories: list[PlatformAccessory]):
        for accessory in accessories:
            entry = self._entries.get(accessory.uuid)
            if entry and entry[0] == plugin and entry[1] == platform:
                del self._entries[accessory.uuid]
        self.save()

    def _on_characteristic(self, accessory_uuid: str) -> Characteristic:
        accessory = self.get_accessory(accessory_uuid)
        if accessory is None:
            raise KeyError(f"No accessory registered with UUID {accessory_uuid}")
        service = accessory.get_service(SERVICE_SWITCH)
        if service is None:
            raise KeyError(f"Accessory {accessory.display_name} has no switch service")
        return service.get_characteristic(CHAR_ON)

    async def read_value(self, accessory_uuid: str) -> Any:
        """Read an accessory's switch state through its get handler."""
        return await self._on_characteristic(accessory_uuid).handle_get()

    async def write_value(self, accessory_uuid: str, value: Any):
        """Set an accessory's switch state through its set handler."""
        await self._on_characteristic(accessory_uuid).handle_set(value)
