"""YAML configuration parser for roslynkit.

This module provides parsing and validation for roslynkit.yaml configuration files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from roslynkit.core.exceptions import ConfigError
from roslynkit.toolchain.resolver import DEFAULT_FEED_URL, DEFAULT_REPOSITORY

CONFIG_FILE_NAME = "roslynkit.yaml"
ACQUISITION_STRATEGIES = ("release", "feed")


@dataclass
class BinaryConfig:
    """User overrides for the server executable."""

    path: Optional[str] = None
    arguments: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    ignore_system_version: bool = False


@dataclass
class ServerConfig:
    """Language-server acquisition settings."""

    acquisition: str = "release"  # 'release', 'feed'
    pre_release: bool = False
    repository: str = DEFAULT_REPOSITORY
    feed_url: str = DEFAULT_FEED_URL
    package_id: Optional[str] = None
    cache_dir: Optional[str] = None
    github_token: Optional[str] = None
    binary: BinaryConfig = field(default_factory=BinaryConfig)
    settings: Dict[str, Any] = field(default_factory=dict)

    def token(self) -> Optional[str]:
        """Configured GitHub token, falling back to $GITHUB_TOKEN."""
        return self.github_token or os.environ.get("GITHUB_TOKEN") or None


@dataclass
class RoslynKitConfig:
    """Complete roslynkit configuration."""

    version: int = 1
    dotnet: str = "dotnet"
    server: ServerConfig = field(default_factory=ServerConfig)


def parse_config(config_path: Path) -> RoslynKitConfig:
    """
    Parse roslynkit.yaml configuration file.

    Args:
        config_path: Path to roslynkit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    if data is None:
        raise ConfigError("Configuration file is empty")

    return _parse_and_validate(data)


def load_config(config_path: Optional[Path] = None) -> RoslynKitConfig:
    """
    Load configuration, falling back to defaults.

    An explicitly given path must exist; otherwise ./roslynkit.yaml is used
    when present.
    """
    if config_path is not None:
        return parse_config(Path(config_path))

    default_path = Path.cwd() / CONFIG_FILE_NAME
    if default_path.exists():
        return parse_config(default_path)

    return RoslynKitConfig()


def _parse_and_validate(data: Any) -> RoslynKitConfig:
    """Parse and validate configuration data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    dotnet = data.get("dotnet", "dotnet")
    if not isinstance(dotnet, str) or not dotnet:
        raise ConfigError("'dotnet' must be a non-empty string")

    return RoslynKitConfig(
        version=1,
        dotnet=dotnet,
        server=_parse_server(_section(data, "server")),
    )


def _parse_server(data: Any) -> ServerConfig:
    if not isinstance(data, dict):
        raise ConfigError("'server' must be a mapping")

    acquisition = data.get("acquisition", "release")
    if acquisition not in ACQUISITION_STRATEGIES:
        raise ConfigError(
            f"Invalid server.acquisition: {acquisition} "
            f"(expected one of {', '.join(ACQUISITION_STRATEGIES)})"
        )

    pre_release = data.get("pre_release", False)
    if not isinstance(pre_release, bool):
        raise ConfigError("server.pre_release must be a boolean")

    settings = _section(data, "settings")
    if not isinstance(settings, dict):
        raise ConfigError("server.settings must be a mapping")

    return ServerConfig(
        acquisition=acquisition,
        pre_release=pre_release,
        repository=_optional_str(data, "repository") or DEFAULT_REPOSITORY,
        feed_url=_optional_str(data, "feed_url") or DEFAULT_FEED_URL,
        package_id=_optional_str(data, "package_id"),
        cache_dir=_optional_str(data, "cache_dir"),
        github_token=_optional_str(data, "github_token"),
        binary=_parse_binary(_section(data, "binary")),
        settings=settings,
    )


def _parse_binary(data: Any) -> BinaryConfig:
    if not isinstance(data, dict):
        raise ConfigError("server.binary must be a mapping")

    arguments = data.get("arguments")
    if arguments is None:
        arguments = []
    if not isinstance(arguments, list):
        raise ConfigError("server.binary.arguments must be a list")

    env = _section(data, "env")
    if not isinstance(env, dict):
        raise ConfigError("server.binary.env must be a mapping")

    ignore = data.get("ignore_system_version", False)
    if not isinstance(ignore, bool):
        raise ConfigError("server.binary.ignore_system_version must be a boolean")

    return BinaryConfig(
        path=_optional_str(data, "path"),
        arguments=[str(a) for a in arguments],
        env={str(k): str(v) for k, v in env.items()},
        ignore_system_version=ignore,
    )


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _section(data: dict, key: str) -> Any:
    """Value of a nested mapping; an absent or null key is an empty mapping."""
    value = data.get(key)
    return {} if value is None else value
