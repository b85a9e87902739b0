"""
Build-tool-mediated installation of the Roslyn language server.

Instead of downloading a prebuilt archive, a throwaway SDK project declaring
the server package is restored with `dotnet restore`, and the package's
language-server content directory is moved into the cache:

    <scratch>/download.csproj
    <scratch>/packages/<id-lower>/<version-lower>/content/LanguageServer/<rid>/
        -> <container>/<prefix>-<version>/
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Optional
from xml.sax.saxutils import escape, quoteattr

from roslynkit.core.exceptions import RestoreFailedError
from roslynkit.core.filesystem import FilesystemError, relocate_directory, safe_rmtree
from roslynkit.core.notify import OnceNotifier
from roslynkit.core.platform import PlatformInfo, detect_platform
from roslynkit.core.process import combined_output, run_command
from roslynkit.toolchain.binary import BinaryDescriptor
from roslynkit.toolchain.cache import CacheStore
from roslynkit.toolchain.resolver import (
    DEFAULT_FEED_URL,
    ToolchainVersion,
    default_package_id,
    require_dotnet,
)

logger = logging.getLogger(__name__)

SERVER_ASSEMBLY = "Microsoft.CodeAnalysis.LanguageServer.dll"
DEFAULT_TARGET_FRAMEWORK = "net9.0"
RESTORE_TIMEOUT = 600

PROJECT_TEMPLATE = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>{target_framework}</TargetFramework>
    <RestorePackagesPath>{packages_dir}</RestorePackagesPath>
    <RestoreSources>{feed_url}</RestoreSources>
    <DisableImplicitNuGetFallbackFolder>true</DisableImplicitNuGetFallbackFolder>
  </PropertyGroup>
  <ItemGroup>
    <PackageDownload Include={package_id} Version={version_range} />
  </ItemGroup>
</Project>
"""


def render_project_file(
    package_id: str,
    version: str,
    packages_dir: Path,
    feed_url: str,
    target_framework: str = DEFAULT_TARGET_FRAMEWORK,
) -> str:
    """Minimal SDK project that pulls exactly `package_id` at `version`."""
    return PROJECT_TEMPLATE.format(
        target_framework=target_framework,
        packages_dir=escape(str(packages_dir)),
        feed_url=escape(feed_url),
        package_id=quoteattr(package_id),
        version_range=quoteattr(f"[{version}]"),
    )


class RestoreInstaller:
    """
    Install the language server by restoring its NuGet package.

    Example:
        >>> installer = RestoreInstaller(notifier=OnceNotifier())
        >>> binary = installer.acquire(ToolchainVersion("5.0.0-1.25277.114"), container)
        >>> binary.command()
        ['/usr/bin/dotnet', '.../Microsoft.CodeAnalysis.LanguageServer.dll', ...]
    """

    def __init__(
        self,
        package_id: Optional[str] = None,
        feed_url: str = DEFAULT_FEED_URL,
        notifier: Optional[OnceNotifier] = None,
        dotnet: str = "dotnet",
        prefix: str = "roslyn",
        platform: Optional[PlatformInfo] = None,
        target_framework: str = DEFAULT_TARGET_FRAMEWORK,
        runner: Callable[..., subprocess.CompletedProcess] = run_command,
    ):
        self.platform = platform or detect_platform()
        self.package_id = package_id or default_package_id(self.platform)
        self.feed_url = feed_url
        self.notifier = notifier
        self.dotnet = dotnet
        self.prefix = prefix
        self.target_framework = target_framework
        self.runner = runner

    def cache_store(self, container_dir: Path) -> CacheStore:
        return CacheStore(container_dir, self.prefix, SERVER_ASSEMBLY)

    def package_content_dir(self, packages_dir: Path, version: str) -> Path:
        rid = self.platform.runtime_identifier()
        return (
            packages_dir
            / self.package_id.lower()
            / version.lower()
            / "content"
            / "LanguageServer"
            / rid
        )

    def descriptor(self, dotnet_path: str, version_dir: Path) -> BinaryDescriptor:
        return BinaryDescriptor(
            path=Path(dotnet_path),
            arguments=(
                str(version_dir / SERVER_ASSEMBLY),
                "--logLevel=Information",
                f"--extensionLogDirectory={version_dir / 'log'}",
                "--stdio",
            ),
        )

    def cached_binary(self, container_dir: Path) -> Optional[BinaryDescriptor]:
        """Offline lookup of the most recently restored server, if any."""
        cached = self.cache_store(container_dir).latest_cached_binary()
        dotnet_path = shutil.which(self.dotnet)
        if cached is None or dotnet_path is None:
            return None
        return self.descriptor(dotnet_path, cached.path.parent)

    def acquire(self, version: ToolchainVersion, container_dir: Path) -> BinaryDescriptor:
        """
        Restore the server package for `version` into `container_dir`.

        Raises:
            PreconditionMissingError: If dotnet is not installed
            RestoreFailedError: If `dotnet restore` fails
            RelocationError: If the restored tree is not laid out as expected
        """
        dotnet_path = require_dotnet(self.dotnet, self.notifier)
        container_dir = Path(container_dir)
        store = self.cache_store(container_dir)
        version_dir = store.version_dir(version.name)

        if (version_dir / SERVER_ASSEMBLY).is_file():
            logger.info(f"Using cached {self.package_id} {version.name}")
            return self.descriptor(dotnet_path, version_dir)

        scratch = Path(tempfile.mkdtemp(prefix="roslynkit_restore_"))
        try:
            packages_dir = scratch / "packages"
            project_file = scratch / "download.csproj"
            project_file.write_text(
                render_project_file(
                    self.package_id,
                    version.name,
                    packages_dir,
                    self.feed_url,
                    self.target_framework,
                ),
                encoding="utf-8",
            )

            logger.info(f"Restoring {self.package_id} {version.name}")
            self._restore(dotnet_path, project_file, scratch)

            if version_dir.exists():
                safe_rmtree(version_dir, require_prefix=container_dir)
            relocate_directory(
                self.package_content_dir(packages_dir, version.name), version_dir
            )
        finally:
            try:
                safe_rmtree(scratch)
            except FilesystemError as e:
                logger.warning(f"Failed to remove scratch directory {scratch}: {e}")

        store.evict_except(version_dir)
        store.write_record(version_dir, version.digest)
        logger.info(f"Installed {self.package_id} {version.name} into {version_dir}")
        return self.descriptor(dotnet_path, version_dir)

    def _restore(self, dotnet_path: str, project_file: Path, cwd: Path) -> None:
        try:
            result = self.runner(
                [dotnet_path, "restore", project_file],
                cwd=cwd,
                timeout=RESTORE_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise RestoreFailedError(-1, f"failed to run dotnet restore: {e}") from e

        if result.returncode != 0:
            raise RestoreFailedError(result.returncode, combined_output(result))
