"""Type definitions for Hue Transitions.

This module provides TypedDict definitions for the bridge payloads and the
dataclass for user-declared scene configuration.
"""

from dataclasses import dataclass
from typing import Literal, NotRequired, TypedDict

SceneStatus = Literal['inactive', 'static', 'dynamic_palette']


class DiscoveredBridge(TypedDict):
    """Bridge information from the discovery service."""
    id: str
    internalipaddress: str
    port: NotRequired[int]


class HueApiErrorDetail(TypedDict):
    """One entry of the v2 response envelope's error list."""
    description: str


class ResourceEnvelope(TypedDict):
    """v2 API response envelope: {errors: [...], data: [...]}"""
    errors: list[HueApiErrorDetail]
    data: list[dict]


class SceneSummary(TypedDict):
    """Scene as listed to the configuration UI."""
    id: str
    name: str


@dataclass(frozen=True)
class SceneConfig:
    """A scene the user wants exposed as a switch."""
    id: str
    name: str
    transition_duration: int  # minutes

    @property
    def transition_ms(self) -> int:
        """Transition duration in milliseconds, as the bridge expects it."""
        return self.transition_duration * 60 * 1000

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'transitionDuration': self.transition_duration,
        }
