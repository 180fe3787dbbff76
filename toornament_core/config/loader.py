"""
Configuration loader with environment variable support.

Loads client configuration from YAML files and resolves environment
variables. A file may hold the settings at top level or under a
``toornament:`` section.
"""

import os
from pathlib import Path
from typing import Optional, Any

import yaml

from toornament_core.config.models import ClientConfig, resolve_env_vars
from toornament_core.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_PATH_ENV = "TOORNAMENT_CONFIG_PATH"
SECTION = "toornament"


def _resolve_dict_env_vars(d: dict) -> dict:
    """Recursively resolve environment variables in a dictionary."""
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            result[key] = _resolve_dict_env_vars(value)
        elif isinstance(value, str) and "${" in value:
            result[key] = resolve_env_vars(value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Load YAML file and resolve environment variables.

    Args:
        path: Path to YAML file

    Returns:
        Parsed YAML content with env vars resolved

    Raises:
        FileNotFoundError: If file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f)

    if content is None:
        return {}

    return _resolve_dict_env_vars(content)


def save_yaml(data: dict[str, Any], path: Path) -> None:
    """
    Save dictionary to YAML file.

    Args:
        data: Data to save
        path: Path to output file
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    logger.debug(f"Saved configuration to {path}")


def load_config(path: Path) -> ClientConfig:
    """
    Load and validate client configuration from a YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Validated configuration; credentials missing from the file fall
        back to the TOORNAMENT_* environment variables
    """
    data = load_yaml(path)
    if isinstance(data.get(SECTION), dict):
        data = data[SECTION]
    return ClientConfig(**data)


class ConfigManager:
    """Loads and holds the client configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path
        self._config: Optional[ClientConfig] = None

    @property
    def config(self) -> ClientConfig:
        """Get loaded configuration."""
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def load(self, path: Optional[Path] = None) -> ClientConfig:
        """
        Load client configuration.

        Without any file, configuration comes from the environment alone.

        Args:
            path: Path to config file (uses constructor path if not provided)

        Returns:
            Loaded and validated config
        """
        config_path = path or self._config_path
        if config_path is None:
            logger.info("No configuration file, reading TOORNAMENT_* environment variables")
            self._config = ClientConfig()
        else:
            logger.info(f"Loading client configuration from {config_path}")
            self._config = load_config(config_path)
        return self._config

    def save(self, path: Path) -> None:
        """
        Save the loaded configuration, without secrets.

        Args:
            path: Output path
        """
        data = self.config.model_dump(exclude={"api_key", "client_secret"})
        save_yaml({SECTION: data}, path)
        logger.info(f"Saved client configuration to {path}")

    @staticmethod
    def from_env() -> "ConfigManager":
        """
        Create ConfigManager from environment variables.

        Looks for TOORNAMENT_CONFIG_PATH environment variable.

        Returns:
            ConfigManager instance
        """
        config_path = os.environ.get(CONFIG_PATH_ENV)
        if config_path:
            return ConfigManager(Path(config_path))
        return ConfigManager()
