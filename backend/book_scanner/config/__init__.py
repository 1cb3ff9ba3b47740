"""Configuration package."""

from book_scanner.config.logging_setup import setup_logging
from book_scanner.config.settings import (
    ScannerConfig,
    Settings,
    get_settings,
    load_yaml_config,
    settings,
    yaml_config,
)

__all__ = [
    # Application settings
    "ScannerConfig",
    "Settings",
    "get_settings",
    "load_yaml_config",
    "settings",
    "yaml_config",
    # Logging
    "setup_logging",
]
