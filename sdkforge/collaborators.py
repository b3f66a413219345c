"""Collaborator protocols consumed by the provisioning core.

The core never talks to the package registry, the filesystem layout tools,
the projection toolchain or the host certificate store directly.  It talks
to objects satisfying these Protocols.  Default implementations live in
``sdkforge.adapters``; tests supply in-memory fakes.

Every collaborator may raise.  The stage that calls it decides whether that
failure is fatal or best-effort.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from sdkforge.core.cancellation import CancellationToken


# ---------------------------------------------------------------------------
# Package registry
# ---------------------------------------------------------------------------


@runtime_checkable
class VersionLookup(Protocol):
    """Resolves the latest published version of a package."""

    def get_latest_version(self, package_name: str, include_prerelease: bool) -> str:
        ...


@runtime_checkable
class PackageInstaller(Protocol):
    """Installs packages into a shared packages directory.

    Returns the ``name -> version`` map that was actually installed.  When
    ``ignore_pinned`` is False, versions in *pinned* are installed verbatim;
    otherwise the latest versions are resolved.
    """

    def install_packages(
        self,
        target_dir: Path,
        names: Sequence[str],
        *,
        include_prerelease: bool,
        ignore_pinned: bool,
        pinned: Mapping[str, str],
        cancel: CancellationToken,
    ) -> dict[str, str]:
        ...


# ---------------------------------------------------------------------------
# Toolchain and layout
# ---------------------------------------------------------------------------


@runtime_checkable
class Toolchain(Protocol):
    """Locates and runs the projection tool."""

    def find_tool_executable(
        self, search_dir: Path, versions: Mapping[str, str]
    ) -> Path | None:
        ...

    def find_projection_inputs(
        self, packages_dir: Path, versions: Mapping[str, str]
    ) -> list[Path]:
        ...

    def run_projection(
        self,
        tool_path: Path,
        input_files: Sequence[Path],
        out_dir: Path,
        work_dir: Path,
        *,
        cancel: CancellationToken,
    ) -> None:
        ...


@runtime_checkable
class LayoutCopier(Protocol):
    """Stages headers, import libraries and runtime binaries."""

    def copy_includes(self, src_packages_dir: Path, dest_dir: Path) -> None:
        ...

    def copy_libs(self, src_packages_dir: Path, dest_dir: Path) -> None:
        ...

    def copy_runtimes(self, src_packages_dir: Path, dest_dir: Path) -> None:
        ...


@runtime_checkable
class AuxiliaryToolProvisioner(Protocol):
    """Ensures the build tools package is present in the global cache."""

    def ensure(
        self,
        pinned_version: str | None,
        *,
        force_latest: bool,
        cancel: CancellationToken,
    ) -> Path | None:
        ...


# ---------------------------------------------------------------------------
# Application manifest
# ---------------------------------------------------------------------------


@runtime_checkable
class ManifestGenerator(Protocol):
    """Writes an application manifest; may prompt unless ``assume_yes``."""

    def generate_manifest(
        self,
        directory: Path,
        *,
        package_name: str | None,
        publisher: str | None,
        version: str,
        description: str,
        executable: str | None,
        sparse: bool,
        logo_path: Path | None,
        assume_yes: bool,
    ) -> Path:
        ...


@runtime_checkable
class ManifestReader(Protocol):
    """Reads identity information from application manifests."""

    def read_publisher(self, manifest_path: Path) -> str:
        ...

    def find_project_manifest(self, directory: Path) -> Path | None:
        ...


# ---------------------------------------------------------------------------
# Certificates and signing
# ---------------------------------------------------------------------------


@runtime_checkable
class CertificateGenerator(Protocol):
    """Creates a self-signed code signing certificate file."""

    def generate(
        self, subject_name: str, output_path: Path, password: str, valid_days: int
    ) -> None:
        ...


@runtime_checkable
class TrustStoreInstaller(Protocol):
    """Installs a certificate as trusted.  Returns False if already trusted."""

    def install(self, cert_path: Path, password: str, force: bool) -> bool:
        ...


@runtime_checkable
class FileSigner(Protocol):
    def sign(
        self,
        file_path: Path,
        certificate_path: Path,
        password: str,
        timestamp_url: str | None,
    ) -> None:
        ...


# ---------------------------------------------------------------------------
# Host state
# ---------------------------------------------------------------------------


@runtime_checkable
class HostPackageQuery(Protocol):
    """Read-only view of the host's installed runtime packages."""

    def find_exact(self, package_identity: str) -> bool:
        ...

    def installed_version(self, package_name: str) -> str | None:
        ...


@runtime_checkable
class RuntimePackageInstaller(Protocol):
    """Installs one runtime package file.  Returns the installer exit code."""

    def install(self, package_path: Path) -> int:
        ...


@runtime_checkable
class DevModeService(Protocol):
    """Enables developer mode.  Returns 0, 3010 (reboot needed) or an error code."""

    def ensure_enabled(self) -> int:
        ...


@runtime_checkable
class Prompter(Protocol):
    def confirm(self, message: str) -> bool:
        ...
