"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- USGS API client (HTTP)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.usgs_client import USGSClient
from src.shell.config_loader import load_config, load_config_from_env, Config

__all__ = [
    "USGSClient",
    "load_config",
    "load_config_from_env",
    "Config",
]
