"""
Configuration management for the pinned checkout provisioner.
"""

import os
import re
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union
from dataclasses import dataclass, field, asdict
import logging

from ..error_handling import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY_URL = "https://github.com/FindoraNetwork/tendermint.git"
DEFAULT_REFERENCE = "tag-v0.33.9"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_PLACEHOLDER = re.compile(r"^\$\{(\w+)\}$")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"expected a boolean, got {value!r}")


# Environment variable -> (section, key, parser). Names, tags and paths stay
# verbatim: a tag called "20240101" or "on" is still a tag.
ENV_SETTINGS: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "PINNED_CHECKOUT_REPOSITORY_URL": ("source", "repository_url", str),
    "PINNED_CHECKOUT_REFERENCE": ("source", "reference", str),
    "PINNED_CHECKOUT_DEPTH": ("source", "depth", int),
    "PINNED_CHECKOUT_VERIFY_EXISTING": ("source", "verify_existing", _parse_bool),
    "PINNED_CHECKOUT_LOG_LEVEL": ("logging", "level", str),
    "PINNED_CHECKOUT_LOG_FILE": ("logging", "file", str),
    "PINNED_CHECKOUT_LOG_STRUCTURED": ("logging", "structured", _parse_bool),
}


@dataclass
class SourceConfig:
    """The pinned reference to provision."""
    repository_url: str = DEFAULT_REPOSITORY_URL
    reference: str = DEFAULT_REFERENCE
    depth: int = 1
    marker: str = ".git"
    verify_existing: bool = False


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    structured: bool = False


@dataclass
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigManager:
    """
    Builds the provisioner's configuration.

    Later layers win: built-in defaults (the pinned tendermint tag), the YAML
    file, ``PINNED_CHECKOUT_*`` environment variables, then the overrides
    handed to ``load_config`` by the command line.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
        """
        Load configuration from all sources.

        Args:
            overrides: ``{section: {key: value}}`` mapping applied last

        Raises:
            ConfigurationError: If a source cannot be read or a value is invalid
        """
        settings = AppConfig().to_dict()

        if self.config_file is not None:
            file_layer = self._expand_placeholders(self._read_config_file(self.config_file))
            self._apply_layer(settings, file_layer, str(self.config_file))

        self._apply_layer(settings, self._read_environment(), "environment")

        if overrides:
            self._apply_layer(settings, overrides, "command line")

        self._validate_config(settings)

        self._config = AppConfig(
            source=SourceConfig(**settings["source"]),
            logging=LoggingConfig(**settings["logging"])
        )
        return self._config

    def get_config(self) -> AppConfig:
        """Return the loaded configuration, loading it on first use."""
        if self._config is None:
            return self.load_config()
        return self._config

    def _read_config_file(self, config_path: Path) -> Dict[str, Any]:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_path}", cause=e
            ) from e

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Expected a mapping in {config_path}, got {type(loaded).__name__}"
            )

        logger.debug(f"Loaded configuration from {config_path}")
        return loaded

    def _read_environment(self) -> Dict[str, Dict[str, Any]]:
        layer: Dict[str, Dict[str, Any]] = {}

        for env_var, (section, key, parse) in ENV_SETTINGS.items():
            raw = os.getenv(env_var)
            if raw is None:
                continue
            try:
                value = parse(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"{env_var}={raw!r} is not a valid {section}.{key}",
                    config_section=section,
                    config_key=key,
                    cause=e
                ) from e
            layer.setdefault(section, {})[key] = value

        return layer

    def _expand_placeholders(self, layer: Dict[str, Any]) -> Dict[str, Any]:
        """Replace ``${VAR}`` values with the environment's value; unset names stay as written."""
        expanded: Dict[str, Any] = {}
        for section, values in layer.items():
            if not isinstance(values, dict):
                expanded[section] = values
                continue
            expanded[section] = {}
            for key, value in values.items():
                match = _PLACEHOLDER.match(value) if isinstance(value, str) else None
                expanded[section][key] = os.getenv(match.group(1), value) if match else value
        return expanded

    def _apply_layer(self, settings: Dict[str, Dict[str, Any]], layer: Dict[str, Any], origin: str) -> None:
        """Copy ``layer`` onto ``settings``, rejecting sections and keys that do not exist."""
        for section, values in layer.items():
            if section not in settings:
                raise ConfigurationError(
                    f"Unknown configuration section '{section}' in {origin}",
                    config_section=str(section)
                )
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigurationError(
                    f"Section '{section}' in {origin} must be a mapping",
                    config_section=section
                )
            for key, value in values.items():
                if key not in settings[section]:
                    raise ConfigurationError(
                        f"Unknown configuration key '{section}.{key}' in {origin}",
                        config_section=section,
                        config_key=str(key)
                    )
                settings[section][key] = value

    def _validate_config(self, settings: Dict[str, Dict[str, Any]]) -> None:
        source = settings["source"]

        for key in ("repository_url", "reference"):
            value = source[key]
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(
                    f"source.{key} must be a non-empty string, got {value!r} "
                    f"(quote it in YAML if it looks like a number or boolean)",
                    config_section="source",
                    config_key=key
                )

        depth = source["depth"]
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise ConfigurationError(
                f"source.depth must be a positive integer, got {depth!r}",
                config_section="source",
                config_key="depth"
            )

        marker = source["marker"]
        if not isinstance(marker, str) or not marker or "/" in marker or os.sep in marker:
            raise ConfigurationError(
                f"source.marker must be a single directory name, got {marker!r}",
                config_section="source",
                config_key="marker"
            )

        level = str(settings["logging"]["level"]).upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {level}. Valid levels: {sorted(VALID_LOG_LEVELS)}",
                config_section="logging",
                config_key="level"
            )
