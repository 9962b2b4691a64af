"""Hue Transitions platform.

Owns the API client and the configured scenes. On launch it resolves the
bridge, checks the connection, registers one switch accessory per configured
scene and starts polling the bridge for scene status, broadcasting every
result to the scene accessories.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable

from core.accessory import HueSceneAccessory
from core.api import HueApiClient, call_bridge
from core.config import (
    MAX_POLLING_INTERVAL,
    MIN_POLLING_INTERVAL,
    PLATFORM_NAME,
    PLUGIN_NAME,
    PlatformConfig,
)
from core.errors import DiscoveryError, HueError
from core.registry import AccessoryRegistry, PlatformAccessory
from models.types import SceneConfig
from models.utils import clamp, first_bridge_address, is_scene_active, scene_name

logger = logging.getLogger(__name__)

SceneListener = Callable[[str, bool], None]


class PlatformState(Enum):
    """Lifecycle of the platform."""
    UNINITIALIZED = 'uninitialized'
    RESOLVING_BRIDGE = 'resolving-bridge'
    CONNECTING = 'connecting'
    READY = 'ready'
    FAILED = 'failed'
    SHUTTING_DOWN = 'shutting-down'


class HueTransitionsPlatform:
    """Manages Hue scene accessories with configurable transition durations."""

    def __init__(self, config: PlatformConfig, registry: AccessoryRegistry):
        self.config = config
        self.registry = registry
        self.state = PlatformState.UNINITIALIZED

        # Accessory management (keyed by accessory UUID)
        self.accessories: dict[str, PlatformAccessory] = {}
        self.accessory_instances: dict[str, HueSceneAccessory] = {}

        self.api_client: HueApiClient | None = None

        # Scene status broadcast
        self._listeners: list[SceneListener] = []

        # Polling
        self.polling_interval: int | None = None
        self._polling_task: asyncio.Task | None = None
        self._poll_tasks: set[asyncio.Task] = set()
        self._is_polling = False

        logger.debug("Finished initializing platform: %s", self.config.name)

    # ===== Broadcast =====

    def on_scene_updated(self, listener: SceneListener):
        """Subscribe to (scene_id, is_active) updates from polling."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SceneListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def remove_all_listeners(self):
        self._listeners.clear()

    def emit_scene_updated(self, scene_id: str, is_active: bool):
        """Call every listener, in subscription order."""
        for listener in list(self._listeners):
            listener(scene_id, is_active)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # ===== Lifecycle =====

    def configure_accessory(self, accessory: PlatformAccessory):
        """Restore a cached accessory from the registry."""
        logger.info("Loading accessory from cache: %s", accessory.display_name)
        self.accessories[accessory.uuid] = accessory

    async def did_finish_launching(self):
        """Entry point once the registry has restored its cached accessories."""
        logger.debug("Executed did_finish_launching callback")
        await self.discover_and_register_scenes()

    async def discover_and_register_scenes(self):
        """Connect to the bridge and reconcile accessories with the configuration.

        Failures are logged and leave the platform in the FAILED state; there
        is no automatic retry.
        """
        try:
            await self.initialize_api_client()

            if self.api_client is None:
                logger.error("Failed to initialize API client - cannot discover scenes")
                self.state = PlatformState.FAILED
                return

            all_scenes = await call_bridge(self.api_client.get_scenes)
            logger.info("Found %d scenes on Hue bridge", len(all_scenes))

            valid_scenes = [s for s in self.config.scenes if s.id and s.name]
            configured_scene_ids = {s.id for s in valid_scenes}

            if not valid_scenes:
                logger.warning(
                    "No scenes configured. Please add scenes using the scene list "
                    "or manually in the plugin configuration."
                )
                logger.info("Available scenes:")
                for scene in all_scenes:
                    logger.info('  - "%s" (ID: %s)', scene_name(scene), scene.get('id'))
                self.remove_stale_accessories(configured_scene_ids)
                self.state = PlatformState.READY
                return

            bridge_scene_ids = {scene.get('id') for scene in all_scenes}

            for scene_config in valid_scenes:
                if scene_config.id not in bridge_scene_ids:
                    logger.warning(
                        "Configured scene \"%s\" (%s) not found on bridge - skipping",
                        scene_config.name, scene_config.id,
                    )
                    continue

                self.register_scene(scene_config)

            self.remove_stale_accessories(configured_scene_ids)

            self.state = PlatformState.READY
            self.start_polling()

            logger.info("Successfully initialized %d scene(s)", len(self.accessory_instances))

        except HueError as e:
            logger.error("Failed to discover and register scenes: %s", e)
            self.state = PlatformState.FAILED
        except Exception:
            logger.exception("Unexpected error while discovering and registering scenes")
            self.state = PlatformState.FAILED

    async def initialize_api_client(self):
        """Resolve the bridge address and API key, then test the connection.

        Leaves api_client as None if any step fails.
        """
        self.state = PlatformState.RESOLVING_BRIDGE

        bridge_ip = self.config.bridge_ip
        if bridge_ip is None:
            logger.info("Bridge IP not configured - attempting auto-discovery...")
            try:
                bridges = await call_bridge(HueApiClient.discover_bridges)
            except DiscoveryError as e:
                logger.error("Auto-discovery failed: %s", e)
                logger.error("Please manually configure your bridge IP address in the plugin settings")
                return

            bridge_ip = first_bridge_address(bridges)
            if bridge_ip is None:
                logger.error("Auto-discovery failed: No Hue bridges found on network")
                logger.error("Please manually configure your bridge IP address in the plugin settings")
                return

            self.config.bridge_ip = bridge_ip
            logger.info("Auto-discovery successful! Found Hue bridge at %s", bridge_ip)

        api_key = self.config.api_key
        if api_key is None:
            logger.warning("API key not configured")
            logger.info("To create an API key:")
            logger.info("1. Press the link button on your Hue bridge")
            logger.info("2. Within 30 seconds, run: hue-transitions create-key %s --save", bridge_ip)
            logger.info(
                "   or: curl -k -X POST https://%s/api -d '{\"devicetype\":\"%s#python\"}'",
                bridge_ip, PLUGIN_NAME,
            )
            logger.info("3. Add the returned key as \"apiKey\" in the plugin configuration")
            return

        self.state = PlatformState.CONNECTING

        client = HueApiClient(bridge_ip, api_key)
        is_connected = await call_bridge(client.test_connection)

        if not is_connected:
            logger.error("Failed to connect to Hue bridge - please check bridge IP and API key")
            client.close()
            return

        self.api_client = client
        logger.info("Successfully connected to Hue bridge at %s", bridge_ip)

    def register_scene(self, scene_config: SceneConfig):
        """Register (or restore) the accessory for one scene."""
        uuid = self.registry.generate_uuid(f"{PLUGIN_NAME}-{scene_config.id}")

        accessory = self.accessories.get(uuid)

        if accessory:
            logger.info("Restoring existing accessory from cache: %s", scene_config.name)
            accessory.context['sceneId'] = scene_config.id
            accessory.context['sceneConfig'] = scene_config.to_dict()
            self.registry.update_platform_accessories([accessory])
        else:
            logger.info("Adding new accessory: %s", scene_config.name)
            accessory = PlatformAccessory(scene_config.name, uuid)
            accessory.context['sceneId'] = scene_config.id
            accessory.context['sceneConfig'] = scene_config.to_dict()

            self.registry.register_platform_accessories(PLUGIN_NAME, PLATFORM_NAME, [accessory])
            self.accessories[uuid] = accessory

        if self.api_client is not None:
            previous = self.accessory_instances.pop(uuid, None)
            if previous:
                previous.detach()
            self.accessory_instances[uuid] = HueSceneAccessory(self, accessory, scene_config, self.api_client)

    def remove_stale_accessories(self, configured_scene_ids: set[str]):
        """Unregister cached accessories whose scene is no longer configured."""
        stale_accessories = []

        for uuid, accessory in list(self.accessories.items()):
            if accessory.context.get('sceneId') in configured_scene_ids:
                continue

            logger.info("Removing stale accessory: %s", accessory.display_name)
            stale_accessories.append(accessory)
            del self.accessories[uuid]

            instance = self.accessory_instances.pop(uuid, None)
            if instance:
                instance.detach()

        if stale_accessories:
            self.registry.unregister_platform_accessories(PLUGIN_NAME, PLATFORM_NAME, stale_accessories)

    # ===== Polling =====

    @property
    def is_polling_active(self) -> bool:
        return self._polling_task is not None

    def start_polling(self):
        """Start polling for scene status. Calling it again while polling does nothing."""
        if self._polling_task is not None:
            return

        interval = self.config.polling_interval
        valid_interval = clamp(interval, MIN_POLLING_INTERVAL, MAX_POLLING_INTERVAL)

        if valid_interval != interval:
            logger.warning(
                "Polling interval %sms is outside valid range (%s-%sms), using %sms",
                interval, MIN_POLLING_INTERVAL, MAX_POLLING_INTERVAL, valid_interval,
            )

        self.polling_interval = valid_interval
        logger.info("Starting scene status polling every %s seconds", valid_interval / 1000)

        self._polling_task = asyncio.create_task(self._polling_loop(valid_interval / 1000))

    def stop_polling(self):
        if self._polling_task is not None:
            self._polling_task.cancel()
            self._polling_task = None
            for task in list(self._poll_tasks):
                task.cancel()
            logger.debug("Stopped scene status polling")

    async def _polling_loop(self, interval: float):
        # Each tick runs as its own task, so a slow tick makes later ones skip
        while True:
            task = asyncio.create_task(self.poll_scene_status())
            self._poll_tasks.add(task)
            task.add_done_callback(self._poll_tasks.discard)
            await asyncio.sleep(interval)

    async def poll_scene_status(self):
        """Fetch all scenes and broadcast the status of each configured one.

        Skipped entirely if the previous poll is still in flight.
        """
        if self._is_polling or self.api_client is None:
            return

        self._is_polling = True

        try:
            scenes = await call_bridge(self.api_client.get_scenes)

            configured_scene_ids = {s.id for s in self.config.scenes}

            for scene in scenes:
                scene_id = scene.get('id')
                if scene_id in configured_scene_ids:
                    self.emit_scene_updated(scene_id, is_scene_active(scene))

            if self.config.debug:
                logger.debug("Scene status poll completed")

        except HueError as e:
            logger.error("Error polling scene status: %s", e)
        except Exception:
            logger.exception("Unexpected error while polling scene status")
        finally:
            self._is_polling = False

    # ===== Shutdown =====

    def shutdown(self):
        """Stop polling and drop all listeners. Accessories stay registered."""
        logger.debug("Shutting down platform")
        self.state = PlatformState.SHUTTING_DOWN

        self.stop_polling()
        self.remove_all_listeners()

        if self.api_client is not None:
            self.api_client.close()

        logger.debug("Cleanup completed")
