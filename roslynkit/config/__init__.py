"""Configuration module for roslynkit.

This module provides YAML configuration parsing and validation for roslynkit.yaml.
"""

from roslynkit.config.parser import (
    BinaryConfig,
    ServerConfig,
    RoslynKitConfig,
    ConfigError,
    parse_config,
    load_config,
)

__all__ = [
    "BinaryConfig",
    "ServerConfig",
    "RoslynKitConfig",
    "ConfigError",
    "parse_config",
    "load_config",
]
