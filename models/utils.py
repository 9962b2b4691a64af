"""Utility functions for Hue Transitions.

- is_scene_active / scene_name: read a bridge scene resource
- first_bridge_address: pick the bridge to use from a discovery result
- clamp: bound a value to a range
- suggest_commands: close matches for a mistyped command name
"""

import difflib

ACTIVE_SCENE_STATUSES = frozenset({'static', 'dynamic_palette'})


def is_scene_active(scene: dict) -> bool:
    """Return True if the bridge reports the scene as active.

    A scene counts as active when its status is 'static' or
    'dynamic_palette'. A missing status is treated as inactive.
    """
    status = scene.get('status') or {}
    return status.get('active') in ACTIVE_SCENE_STATUSES


def scene_name(scene: dict) -> str:
    """Get a scene's display name, falling back to 'Unknown'."""
    return (scene.get('metadata') or {}).get('name', 'Unknown')


def first_bridge_address(bridges: list) -> str | None:
    """Address of the first discovered bridge that has one, else None."""
    for bridge in bridges or []:
        if isinstance(bridge, dict) and isinstance(bridge.get('internalipaddress'), str) \
                and bridge['internalipaddress']:
            return bridge['internalipaddress']
    return None


def clamp(value: int, minimum: int, maximum: int) -> int:
    """Clamp value into [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def suggest_commands(name: str, commands: list[str], limit: int = 3) -> list[str]:
    """Commands that look like `name`: prefix matches first, then fuzzy matches."""
    if not name:
        return []

    lowered = name.lower()
    prefixed = [c for c in commands if c.startswith(lowered) or lowered.startswith(c)]
    fuzzy = difflib.get_close_matches(lowered, commands, n=limit, cutoff=0.5)

    suggestions = []
    for command in prefixed + fuzzy:
        if command not in suggestions:
            suggestions.append(command)
    return suggestions[:limit]
