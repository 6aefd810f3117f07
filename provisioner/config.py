"""
Configuration management for provisioner.

Loads and validates the provisioner.yaml configuration file:

    definitions:
      dir: definitions
    logging:
      level: INFO
      format: structured     # or "pretty"
      output: logs/provisioner-{date}.log
      console: true
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from provisioner.errors import ConfigError


CONFIG_ENV_VAR = "PROVISIONER_CONFIG"
DEFAULT_CONFIG_FILE = "provisioner.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("structured", "pretty")


class ProvisionerConfig:
    """Complete provisioner configuration."""

    def __init__(self, raw_config: Optional[Dict[str, Any]] = None, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.raw_config = raw_config or {}

        self.definitions = self.raw_config.get("definitions", {}) or {}

        self.logging = self.raw_config.get("logging", {}) or {}

    @classmethod
    def from_file(cls, config_path: Path) -> "ProvisionerConfig":
        """Load configuration from a YAML file."""
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError(f"Configuration must be a mapping: {config_path}")

        return cls(config, config_path)

    def get_definitions_dir(self) -> Path:
        """Get the definitions directory, relative to the config file if given."""
        path = Path(self.definitions.get("dir", "definitions"))
        if not path.is_absolute() and self.config_path is not None:
            path = self.config_path.parent / path
        return path

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path with date interpolation, or None to skip file logging."""
        log_output = self.logging.get("output")
        if not log_output:
            return None
        log_output = log_output.replace("{date}", datetime.now().strftime("%Y-%m-%d"))
        return Path(log_output)

    def get_log_level(self) -> str:
        """Get logging level."""
        return str(self.logging.get("level", "INFO")).upper()

    def get_log_format(self) -> str:
        """Get log format (structured or pretty)."""
        return self.logging.get("format", "structured")

    def should_log_to_console(self) -> bool:
        """Check if console logging is enabled."""
        return self.logging.get("console", True)

    def validate(self) -> None:
        """Validate entire configuration."""
        for section in ("definitions", "logging"):
            if not isinstance(getattr(self, section), dict):
                raise ConfigError(f"'{section}' section must be a mapping")

        if self.get_log_level() not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid logging level '{self.get_log_level()}', expected one of {LOG_LEVELS}"
            )
        if self.get_log_format() not in LOG_FORMATS:
            raise ConfigError(
                f"Invalid logging format '{self.get_log_format()}', expected one of {LOG_FORMATS}"
            )

    def __repr__(self) -> str:
        return f"ProvisionerConfig(path={self.config_path}, definitions={self.get_definitions_dir()})"


def load_config(config_path: Optional[Path] = None) -> ProvisionerConfig:
    """
    Load provisioner configuration.

    The path is taken from the argument, then the PROVISIONER_CONFIG
    environment variable, then ./provisioner.yaml. When no path is given and
    the default file does not exist, defaults are used.

    Returns:
        Validated ProvisionerConfig instance

    Raises:
        ConfigError: If config is invalid, or an explicit path is missing
    """
    if config_path is None and os.environ.get(CONFIG_ENV_VAR):
        config_path = Path(os.environ[CONFIG_ENV_VAR])

    if config_path is None:
        default_path = Path.cwd() / DEFAULT_CONFIG_FILE
        config = ProvisionerConfig.from_file(default_path) if default_path.exists() else ProvisionerConfig()
    else:
        config = ProvisionerConfig.from_file(Path(config_path))

    config.validate()
    return config
