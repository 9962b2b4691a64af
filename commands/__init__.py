"""CLI command modules.

This package contains:
- setup: Custom Click group, bridge discovery and API key creation
- scenes: Scene listing, activation and connection test
- run: Run the scene switch platform
- switch: Operate a single scene switch through the registry
"""
