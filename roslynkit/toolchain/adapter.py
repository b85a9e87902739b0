"""
Host-facing adapter for the C# language server.

RoslynServerAdapter wires the version resolver, cache and installer selected
by configuration into the lookup order a host uses when it needs a server:

1. An executable configured explicitly by the user
2. A `csharp-language-server` already on PATH
3. The newest version, resolved and acquired into the container directory
4. Whatever was cached last, when resolution or acquisition fails
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

from roslynkit.config.parser import RoslynKitConfig
from roslynkit.core.directory import get_container_dir
from roslynkit.core.exceptions import AcquisitionError, ResolutionError
from roslynkit.core.notify import OnceNotifier
from roslynkit.core.platform import PlatformInfo, detect_platform
from roslynkit.toolchain.binary import BinaryDescriptor
from roslynkit.toolchain.installer import VERSION_DIR_PREFIX, BinaryInstaller
from roslynkit.toolchain.local import find_user_installed
from roslynkit.toolchain.resolver import (
    ASSET_PREFIX,
    FeedSearchResolver,
    ReleaseIndexResolver,
    ToolchainVersion,
    VersionResolver,
)
from roslynkit.toolchain.restore import RestoreInstaller

logger = logging.getLogger(__name__)

SERVER_NAME = "roslyn"

Installer = Union[BinaryInstaller, RestoreInstaller]


class RoslynServerAdapter:
    """
    Locate or install the C# language server for a host.

    Example:
        >>> adapter = RoslynServerAdapter(load_config(), OnceNotifier())
        >>> binary = adapter.get_binary()
        >>> subprocess.Popen(binary.command(), env=...)
    """

    name = SERVER_NAME

    def __init__(
        self,
        config: Optional[RoslynKitConfig] = None,
        notifier: Optional[OnceNotifier] = None,
        session: Optional[requests.Session] = None,
        platform: Optional[PlatformInfo] = None,
        container_dir: Optional[Path] = None,
    ):
        self.config = config or RoslynKitConfig()
        self.notifier = notifier or OnceNotifier()
        self.session = session or requests.Session()
        self.platform = platform or detect_platform()
        self._container_dir = Path(container_dir) if container_dir else None

        self.resolver = self._create_resolver()
        self.installer = self._create_installer()

    @property
    def container_dir(self) -> Path:
        if self._container_dir is None:
            cache_dir = self.config.server.cache_dir
            self._container_dir = get_container_dir(
                SERVER_NAME, Path(cache_dir).expanduser() if cache_dir else None
            )
        return self._container_dir

    def _create_resolver(self) -> VersionResolver:
        server = self.config.server
        if server.acquisition == "feed":
            return FeedSearchResolver(
                package_id=server.package_id,
                feed_url=server.feed_url,
                notifier=self.notifier,
                dotnet=self.config.dotnet,
                platform=self.platform,
            )
        return ReleaseIndexResolver(
            repository=server.repository,
            pre_release=server.pre_release,
            platform=self.platform,
            session=self.session,
            token=server.token(),
        )

    def _create_installer(self) -> Installer:
        server = self.config.server
        if server.acquisition == "feed":
            return RestoreInstaller(
                package_id=server.package_id,
                feed_url=server.feed_url,
                notifier=self.notifier,
                dotnet=self.config.dotnet,
                prefix=VERSION_DIR_PREFIX,
                platform=self.platform,
            )
        return BinaryInstaller(
            binary_base_name=ASSET_PREFIX,
            prefix=VERSION_DIR_PREFIX,
            platform=self.platform,
            session=self.session,
        )

    def configured_binary(self) -> Optional[BinaryDescriptor]:
        """Executable set explicitly in configuration, if any."""
        binary = self.config.server.binary
        if not binary.path:
            return None
        return BinaryDescriptor(
            path=Path(binary.path).expanduser(),
            arguments=tuple(binary.arguments),
            env=binary.env or None,
        )

    def check_if_user_installed(self) -> Optional[BinaryDescriptor]:
        if self.config.server.binary.ignore_system_version:
            return None
        return find_user_installed(self.platform.executable_name(ASSET_PREFIX))

    def fetch_latest_server_version(self) -> ToolchainVersion:
        return self.resolver.resolve()

    def fetch_server_binary(self, version: ToolchainVersion) -> BinaryDescriptor:
        return self.installer.acquire(version, self.container_dir)

    def cached_server_binary(self) -> Optional[BinaryDescriptor]:
        """Most recently cached binary; never touches the network."""
        return self.installer.cached_binary(self.container_dir)

    def get_binary(self) -> BinaryDescriptor:
        """
        Produce a launchable server, installing it when necessary.

        Raises:
            PreconditionMissingError: If the feed strategy needs dotnet and it is missing
            ResolutionError: If no version can be resolved and nothing is cached
            AcquisitionError: If no binary can be produced and nothing is cached
        """
        configured = self.configured_binary()
        if configured is not None:
            return configured

        installed = self.check_if_user_installed()
        if installed is not None:
            return installed

        try:
            version = self.fetch_latest_server_version()
            return self.fetch_server_binary(version)
        except (ResolutionError, AcquisitionError) as e:
            cached = self.cached_server_binary()
            if cached is None:
                raise
            logger.warning(f"Falling back to cached {SERVER_NAME} server: {e}")
            return cached

    def workspace_configuration(self) -> Dict[str, Any]:
        """Server settings passed through to the language server as-is."""
        return dict(self.config.server.settings)
