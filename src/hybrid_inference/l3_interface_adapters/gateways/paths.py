"""Shared path constants for configuration and provider settings."""

from __future__ import annotations

from platformdirs import user_config_path

APP_NAME = 'hybrid-inference'

CONFIG_DIR = user_config_path(APP_NAME)

PROVIDER_SETTINGS_PATH = CONFIG_DIR / 'providers.yaml'

DEFAULT_CONFIG_PATHS = [
    CONFIG_DIR / 'config.yaml',
    CONFIG_DIR / 'config.yml',
]
