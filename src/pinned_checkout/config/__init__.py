"""
Configuration management for the pinned checkout provisioner.
"""

from .config_manager import (
    ConfigManager, AppConfig, SourceConfig, LoggingConfig,
    DEFAULT_REPOSITORY_URL, DEFAULT_REFERENCE
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "SourceConfig",
    "LoggingConfig",
    "DEFAULT_REPOSITORY_URL",
    "DEFAULT_REFERENCE"
]
