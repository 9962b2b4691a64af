"""Core functionality for Hue Transitions.

This package contains:
- api: HueApiClient for bridge communication
- errors: Exception hierarchy for bridge failures
- config: Constants and configuration file handling
- registry: Persisted accessory registry and switch characteristics
- accessory: HueSceneAccessory (one scene as a switch)
- platform: HueTransitionsPlatform (bootstrap, polling, broadcast)
- ui_server: Scene listing for the configuration UI
"""
