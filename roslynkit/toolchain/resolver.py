"""
Language-server version resolution.

Two mutually exclusive strategies decide which server version is wanted:

- ReleaseIndexResolver queries the GitHub releases API of the server project
  and picks the prebuilt archive for the current platform.
- FeedSearchResolver asks `dotnet package search` for the newest package
  version on a NuGet feed.

Both return a ToolchainVersion or raise a ResolutionError subclass.
"""

import json
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from roslynkit.core.exceptions import (
    FeedUnavailableError,
    NoMatchingAssetError,
    PreconditionMissingError,
    ResolutionError,
    VersionFieldMissingError,
)
from roslynkit.core.notify import OnceNotifier
from roslynkit.core.platform import PlatformInfo, detect_platform
from roslynkit.core.process import combined_output, run_command

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DEFAULT_REPOSITORY = "SofusA/csharp-language-server"
ASSET_PREFIX = "csharp-language-server"

DEFAULT_FEED_URL = (
    "https://pkgs.dev.azure.com/azure-public/vside/_packaging/vs-impl/nuget/v3/index.json"
)
PACKAGE_ID_PREFIX = "Microsoft.CodeAnalysis.LanguageServer"

SEARCH_TIMEOUT = 120

DOTNET_MISSING_MESSAGE = (
    "The .NET SDK ('{dotnet}') was not found on PATH. "
    "Install it to enable the C# language server."
)


@dataclass(frozen=True)
class ToolchainVersion:
    """
    A resolved server version.

    Attributes:
        name: Release tag or package version
        url: Download URL of the archive (release-index strategy only)
        digest: Advertised content digest, e.g. 'sha256:<hex>'
    """

    name: str
    url: Optional[str] = None
    digest: Optional[str] = None


class VersionResolver(ABC):
    """Determines the wanted server version."""

    @abstractmethod
    def resolve(self) -> ToolchainVersion:
        """
        Resolve the newest wanted version.

        Raises:
            ResolutionError: If no version can be determined
        """
        pass


def require_dotnet(dotnet: str, notifier: Optional[OnceNotifier]) -> str:
    """
    Locate the dotnet CLI, notifying the user once if it is missing.

    Returns:
        Absolute path of the dotnet executable

    Raises:
        PreconditionMissingError: If dotnet is not on PATH
    """
    found = shutil.which(dotnet)
    if found:
        return found

    message = DOTNET_MISSING_MESSAGE.format(dotnet=dotnet)
    if notifier is not None:
        notifier.notify(message)
    raise PreconditionMissingError(dotnet, message)


# =============================================================================
# Release index
# =============================================================================


class ReleaseIndexResolver(VersionResolver):
    """
    Resolve the newest release of a GitHub project and its platform asset.

    Example:
        >>> resolver = ReleaseIndexResolver(pre_release=False)
        >>> version = resolver.resolve()
        >>> version.name, version.url
        ('0.1.0', 'https://github.com/.../csharp-language-server-x86_64-unknown-linux-gnu.tar.gz')
    """

    def __init__(
        self,
        repository: str = DEFAULT_REPOSITORY,
        pre_release: bool = False,
        platform: Optional[PlatformInfo] = None,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        timeout: int = 30,
    ):
        self.repository = repository
        self.pre_release = pre_release
        self.platform = platform or detect_platform()
        self.session = session or requests.Session()
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def asset_name(self) -> str:
        """
        Name of the release asset for this platform.

        Raises:
            UnsupportedPlatformError: For platforms without a prebuilt server
        """
        triple = self.platform.target_triple()
        return f"{ASSET_PREFIX}-{triple}.{self.platform.archive_extension()}"

    def fetch_latest_release(self) -> dict:
        """
        Fetch the newest release that ships assets.

        Pre-releases are only considered when `pre_release` is set.

        Raises:
            ResolutionError: On HTTP failure, bad JSON or no suitable release
        """
        url = f"{self.api_url}/repos/{self.repository}/releases"
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug(f"Querying release index: {url}")
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ResolutionError(
                f"Failed to query releases of {self.repository}: {e}"
            ) from e

        try:
            releases = response.json()
        except ValueError as e:
            raise ResolutionError(
                f"Release index for {self.repository} returned invalid JSON: {e}"
            ) from e

        if not isinstance(releases, list):
            raise ResolutionError(
                f"Unexpected release index response for {self.repository}"
            )

        for release in releases:
            if not isinstance(release, dict) or not release.get("assets"):
                continue
            if release.get("prerelease") and not self.pre_release:
                continue
            return release

        raise ResolutionError(f"No releases with assets found for {self.repository}")

    def resolve(self) -> ToolchainVersion:
        # Platform support is checked before touching the network
        asset_name = self.asset_name()
        release = self.fetch_latest_release()
        tag = release.get("tag_name") or ""

        for asset in release["assets"]:
            if not isinstance(asset, dict):
                continue
            if asset.get("name") == asset_name:
                version = ToolchainVersion(
                    name=tag,
                    url=asset.get("browser_download_url"),
                    digest=asset.get("digest") or None,
                )
                logger.info(f"Resolved {self.repository} {tag} ({asset_name})")
                return version

        raise NoMatchingAssetError(asset_name, tag)


# =============================================================================
# Local feed search
# =============================================================================


def parse_search_output(output: str) -> str:
    """
    Extract the latest version from `dotnet package search --format json` output.

    Only the first package of the first search result is considered.

    Raises:
        VersionFieldMissingError: If the JSON shape or the field is missing/empty
    """
    try:
        data = json.loads(output)
        latest = data["searchResult"][0]["packages"][0]["latestVersion"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise VersionFieldMissingError(
            f"Package search output has no searchResult[0].packages[0].latestVersion: {e}"
        ) from e

    if not isinstance(latest, str) or not latest.strip():
        raise VersionFieldMissingError("Package search returned an empty latestVersion")

    return latest.strip()


class FeedSearchResolver(VersionResolver):
    """
    Resolve the newest package version on a NuGet feed via the dotnet CLI.
    """

    def __init__(
        self,
        package_id: Optional[str] = None,
        feed_url: str = DEFAULT_FEED_URL,
        notifier: Optional[OnceNotifier] = None,
        dotnet: str = "dotnet",
        platform: Optional[PlatformInfo] = None,
        runner: Callable[..., subprocess.CompletedProcess] = run_command,
    ):
        self.platform = platform or detect_platform()
        self.package_id = package_id or default_package_id(self.platform)
        self.feed_url = feed_url
        self.notifier = notifier
        self.dotnet = dotnet
        self.runner = runner

    def search_command(self, dotnet_path: str) -> list:
        return [
            dotnet_path,
            "package",
            "search",
            self.package_id,
            "--source",
            self.feed_url,
            "--prerelease",
            "--format",
            "json",
        ]

    def resolve(self) -> ToolchainVersion:
        dotnet_path = require_dotnet(self.dotnet, self.notifier)

        try:
            result = self.runner(self.search_command(dotnet_path), timeout=SEARCH_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            raise FeedUnavailableError(
                f"Failed to run package search for {self.package_id}: {e}"
            ) from e

        if result.returncode != 0:
            raise FeedUnavailableError(
                f"Package search for {self.package_id} on {self.feed_url} failed "
                f"with exit code {result.returncode}: {combined_output(result).strip()}"
            )

        version = parse_search_output(result.stdout)
        logger.info(f"Resolved {self.package_id} {version} from {self.feed_url}")
        return ToolchainVersion(name=version)


def default_package_id(platform: PlatformInfo) -> str:
    """Platform-specific Roslyn language server package id."""
    return f"{PACKAGE_ID_PREFIX}.{platform.runtime_identifier()}"
