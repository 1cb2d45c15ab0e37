"""
Updater configuration management with YAML parsing and validation
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import __version__

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when the configuration file is missing or malformed."""


def load_yaml_config(path: str) -> Dict[str, Any]:
    """Read a YAML file and return its top-level mapping."""
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")
    return data


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return dict(value)


@dataclass
class LimitsConfig:
    """HTTP timeout and redirect configuration"""
    connect_timeout_ms: int = 4000
    read_timeout_ms: int = 15000
    max_redirects: int = 5

    def __post_init__(self):
        if self.connect_timeout_ms < 100:
            raise ValueError(f"connect_timeout_ms too low: {self.connect_timeout_ms}")
        if self.read_timeout_ms <= 0:
            raise ValueError(f"read_timeout_ms must be > 0, got {self.read_timeout_ms}")
        if self.max_redirects < 0:
            raise ValueError(f"max_redirects must be >= 0, got {self.max_redirects}")


@dataclass
class StoreConfig:
    """Destination file configuration"""
    permissions: int = 0o644

    def __post_init__(self):
        # YAML has no octal literal for '0o644'; accept it as a string
        if isinstance(self.permissions, str):
            try:
                self.permissions = int(self.permissions, 0)
            except ValueError:
                raise ValueError(f"store.permissions is not an integer: {self.permissions!r}")
        if not 0 <= self.permissions <= 0o777:
            raise ValueError(f"store.permissions out of range: {oct(self.permissions)}")


@dataclass
class LogsConfig:
    """Logging configuration"""
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"logs.log_level must be one of: {', '.join(LOG_LEVELS)}")


@dataclass
class UpdaterConfig:
    """Main updater configuration"""
    output_dir: str = "."
    user_agent: str = f"iso-assets-updater/{__version__}"

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)

    def __post_init__(self):
        if not self.output_dir:
            raise ValueError("output_dir is required")
        if not self.user_agent:
            raise ValueError("user_agent is required")
        self.output_dir = os.path.expanduser(str(self.output_dir))

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdaterConfig":
        """Build a config from a parsed YAML mapping"""
        known = {"output_dir", "user_agent", "limits", "store", "logs"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {k: data[k] for k in ("output_dir", "user_agent") if k in data}
        try:
            kwargs["limits"] = LimitsConfig(**_section(data, "limits"))
            kwargs["store"] = StoreConfig(**_section(data, "store"))
            kwargs["logs"] = LogsConfig(**_section(data, "logs"))
        except TypeError as e:
            raise ConfigError(f"Invalid configuration section: {e}") from e

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str) -> "UpdaterConfig":
        """Load configuration from YAML file"""
        return cls.from_dict(load_yaml_config(path))
