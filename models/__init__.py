"""Data models and utility functions.

This package contains:
- types: TypedDicts for bridge payloads and the SceneConfig dataclass
- utils: Scene status helpers, bridge selection, command suggestions
"""
