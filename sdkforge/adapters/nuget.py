"""NuGet registry adapters: version lookup, package install, build tools.

Version lookup uses the v3 flat-container API::

    GET {index_url}/{lowercased-id}/index.json  ->  {"versions": [...]}

Installs shell out to ``nuget install`` into the shared packages directory,
which lays packages out as ``<packages>/<Id>.<Version>/``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import requests

from sdkforge.adapters.process import run_process
from sdkforge.collaborators import VersionLookup
from sdkforge.core.cancellation import NEVER_CANCELLED, CancellationToken
from sdkforge.core.version_resolver import BUILD_TOOLS_PACKAGE

logger = logging.getLogger(__name__)


class PackageLookupError(RuntimeError):
    """Raised when the registry has no usable version for a package."""


def is_prerelease(version: str) -> bool:
    return "-" in version


def version_sort_key(version: str) -> tuple:
    """Order NuGet versions; a release sorts above its own prereleases."""
    core, _, label = version.partition("+")[0].partition("-")
    numbers = tuple(int(part) if part.isdigit() else 0 for part in core.split("."))
    numbers = numbers + (0,) * (4 - len(numbers))
    return (numbers, label == "", label)


def pick_latest(versions: Sequence[str], include_prerelease: bool) -> str | None:
    candidates = [v for v in versions if include_prerelease or not is_prerelease(v)]
    if not candidates:
        return None
    return max(candidates, key=version_sort_key)


class NuGetVersionLookup:
    """``VersionLookup`` backed by the NuGet flat-container index."""

    def __init__(
        self,
        index_url: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._index_url = index_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def get_latest_version(self, package_name: str, include_prerelease: bool) -> str:
        url = f"{self._index_url}/{package_name.lower()}/index.json"
        logger.debug("GET %s", url)
        response = self._session.get(url, timeout=self._timeout)
        response.raise_for_status()

        versions = response.json().get("versions", [])
        latest = pick_latest(versions, include_prerelease)
        if latest is None:
            raise PackageLookupError(f"No versions found for {package_name}")
        return latest


class NuGetCliInstaller:
    """``PackageInstaller`` that drives ``nuget install``."""

    def __init__(self, executable: str, lookup: VersionLookup) -> None:
        self._executable = executable
        self._lookup = lookup

    def install_packages(
        self,
        target_dir: Path,
        names: Sequence[str],
        *,
        include_prerelease: bool,
        ignore_pinned: bool,
        pinned: Mapping[str, str],
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> dict[str, str]:
        target_dir.mkdir(parents=True, exist_ok=True)
        pins = {name.lower(): version for name, version in pinned.items()}
        used: dict[str, str] = {}

        for name in names:
            cancel.raise_if_cancelled()
            version = None if ignore_pinned else pins.get(name.lower())
            if not version:
                version = self._lookup.get_latest_version(name, include_prerelease)
            self.install_one(target_dir, name, version, cancel=cancel)
            used[name] = version

        return used

    def install_one(
        self,
        target_dir: Path,
        name: str,
        version: str,
        *,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> Path:
        package_dir = target_dir / f"{name}.{version}"
        if package_dir.is_dir():
            logger.debug("%s %s already present", name, version)
            return package_dir

        logger.info("Installing %s %s", name, version)
        args = [
            self._executable,
            "install",
            name,
            "-Version",
            version,
            "-OutputDirectory",
            str(target_dir),
            "-NonInteractive",
        ]
        if is_prerelease(version):
            args.append("-Prerelease")
        run_process(args, cancel=cancel, check=True)
        return package_dir


class NuGetBuildToolsProvisioner:
    """``AuxiliaryToolProvisioner`` for the Windows SDK build tools package."""

    def __init__(
        self,
        installer: NuGetCliInstaller,
        lookup: VersionLookup,
        packages_dir: Path,
        *,
        include_prerelease: bool = False,
    ) -> None:
        self._installer = installer
        self._lookup = lookup
        self._packages_dir = packages_dir
        self._include_prerelease = include_prerelease

    def ensure(
        self,
        pinned_version: str | None,
        *,
        force_latest: bool,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> Path | None:
        if force_latest or not pinned_version:
            version = self._lookup.get_latest_version(
                BUILD_TOOLS_PACKAGE, self._include_prerelease
            )
        else:
            version = pinned_version

        package_dir = self._installer.install_one(
            self._packages_dir, BUILD_TOOLS_PACKAGE, version, cancel=cancel
        )
        bin_dir = package_dir / "bin"
        if bin_dir.is_dir():
            return bin_dir
        return package_dir if package_dir.is_dir() else None
