"""
Toornament Core - client library for the Toornament web API.

This module provides:
- Authenticated API client with automatic access token refresh
- Typed request/response models
- Configuration management
- Logging setup
"""

from toornament_core.api.client import Toornament
from toornament_core.api.exceptions import APIError
from toornament_core.config.loader import ConfigManager
from toornament_core.config.models import ClientConfig
from toornament_core.utils.logging import setup_logging, get_logger

__version__ = "1.0.0"
__all__ = [
    "Toornament",
    "APIError",
    "ConfigManager",
    "ClientConfig",
    "setup_logging",
    "get_logger",
]
