"""Configuration management module."""

from toornament_core.config.loader import ConfigManager, load_config, load_yaml, save_yaml
from toornament_core.config.models import ClientConfig, resolve_env_vars

__all__ = [
    "ConfigManager",
    "ClientConfig",
    "load_config",
    "load_yaml",
    "save_yaml",
    "resolve_env_vars",
]
