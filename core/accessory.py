"""Scene switch accessory.

Presents one Hue scene as an on/off switch. Turning the switch on recalls the
scene with the configured transition; turning it off only clears the local
activation record, since a scene has no "off" on the bridge.

The switch reads as on if either signal says so:
- we triggered the scene within the last 30 seconds, or
- the bridge reports the scene as active (static or dynamic_palette).
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from core.api import HueApiClient, call_bridge
from core.config import RECENT_ACTIVATION_WINDOW
from core.errors import HueError
from core.registry import (
    CHAR_MANUFACTURER,
    CHAR_MODEL,
    CHAR_NAME,
    CHAR_ON,
    CHAR_SERIAL_NUMBER,
    SERVICE_ACCESSORY_INFORMATION,
    SERVICE_SWITCH,
    CommunicationFailure,
    PlatformAccessory,
)
from models.types import SceneConfig
from models.utils import is_scene_active

if TYPE_CHECKING:
    from core.platform import HueTransitionsPlatform

logger = logging.getLogger(__name__)

# Delay before reverting the switch after a failed activation (seconds)
REVERT_DELAY = 0.1


class HueSceneAccessory:
    """A Hue scene exposed as a switch with a configurable transition."""

    def __init__(self, platform: 'HueTransitionsPlatform', accessory: PlatformAccessory,
                 scene_config: SceneConfig, api: HueApiClient):
        self.platform = platform
        self.accessory = accessory
        self._scene_config = scene_config
        self.api = api

        # Activation tracking
        self.is_activating = False
        self.last_activated: float | None = None

        info_service = self.accessory.get_service(SERVICE_ACCESSORY_INFORMATION)
        if info_service:
            (info_service
                .set_characteristic(CHAR_MANUFACTURER, 'Philips Hue')
                .set_characteristic(CHAR_MODEL, 'Scene Switch')
                .set_characteristic(CHAR_SERIAL_NUMBER, scene_config.id)
                .set_characteristic(CHAR_NAME, scene_config.name))

        self.service = (self.accessory.get_service(SERVICE_SWITCH)
                        or self.accessory.add_service(SERVICE_SWITCH))
        self.service.set_characteristic(CHAR_NAME, scene_config.name)

        (self.service.get_characteristic(CHAR_ON)
            .on_get(self.get_on)
            .on_set(self.set_on))

        self.platform.on_scene_updated(self.handle_scene_update)

        logger.debug("Scene accessory initialized: %s (%s)", scene_config.name, scene_config.id)

    @property
    def scene_config(self) -> SceneConfig:
        return self._scene_config

    @property
    def debug(self) -> bool:
        return self.platform.config.debug

    def was_recently_activated(self) -> bool:
        """True if we triggered the scene less than 30 seconds ago."""
        if self.last_activated is None:
            return False
        elapsed_ms = (time.monotonic() - self.last_activated) * 1000
        return elapsed_ms < RECENT_ACTIVATION_WINDOW

    async def get_on(self) -> bool:
        """Current switch state.

        A recent local activation wins without asking the bridge. Otherwise
        the bridge's scene status decides; if the bridge can't be asked the
        switch reads as off.
        """
        try:
            if self.was_recently_activated():
                return True

            try:
                scene = await call_bridge(self.api.get_scene, self._scene_config.id)
            except HueError as e:
                logger.warning("Failed to get scene status for %s: %s", self._scene_config.name, e)
                return False

            is_active = is_scene_active(scene)
            if self.debug:
                status = (scene.get('status') or {}).get('active', 'unknown')
                logger.debug("Scene %s status: %s, isActive: %s", self._scene_config.name, status, is_active)

            return is_active

        except Exception as e:
            logger.error("Error getting state for scene %s: %s", self._scene_config.name, e)
            raise CommunicationFailure() from e

    async def set_on(self, value: Any):
        """Handle a switch toggle.

        On recalls the scene with the configured transition. Off only forgets
        the local activation. A toggle that arrives while an activation is in
        flight is ignored.
        """
        is_on = bool(value)

        if self.is_activating:
            logger.debug("Scene %s is already activating, ignoring request", self._scene_config.name)
            return

        try:
            if is_on:
                self.is_activating = True

                logger.info(
                    "Activating scene \"%s\" with %s minute transition",
                    self._scene_config.name, self._scene_config.transition_duration,
                )

                await call_bridge(
                    self.api.recall_scene, self._scene_config.id, self._scene_config.transition_ms
                )

                self.last_activated = time.monotonic()
                logger.info("Successfully activated scene \"%s\"", self._scene_config.name)
            else:
                self.last_activated = None
                if self.debug:
                    logger.debug("Scene %s turned off (no action taken)", self._scene_config.name)

        except Exception as e:
            logger.error("Failed to activate scene %s: %s", self._scene_config.name, e)

            # Let the registry's own optimistic update land before reverting it
            asyncio.get_running_loop().call_later(
                REVERT_DELAY, self.service.update_characteristic, CHAR_ON, not is_on
            )

            raise CommunicationFailure() from e
        finally:
            self.is_activating = False

    def handle_scene_update(self, scene_id: str, is_active: bool):
        """Apply a polled status update if it is for this scene."""
        if scene_id != self._scene_config.id:
            return

        if self.debug:
            logger.debug("Updating scene %s state to %s", self._scene_config.name, is_active)

        self.service.update_characteristic(CHAR_ON, is_active)

    def detach(self):
        """Stop receiving polled status updates."""
        self.platform.remove_listener(self.handle_scene_update)
