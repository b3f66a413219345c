"""Runtime package convergence: skip, upgrade, or install per inventory entry.

For each entry of the architecture inventory, in order:

1. Exact identity already installed            -> skip.
2. Same name installed at >= inventory version -> skip (never downgrade).
   Same name installed at a lower version      -> upgrade.
   Either version unparseable                  -> install (fail open).
3. Package file missing on disk                -> skip with a diagnostic.
4. Installer returns non-zero or raises        -> record and continue.

No single entry can abort the batch.
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Mapping, Sequence
from pathlib import Path

from sdkforge.collaborators import HostPackageQuery, RuntimePackageInstaller
from sdkforge.core.cancellation import (
    NEVER_CANCELLED,
    CancellationToken,
    OperationCancelledError,
)
from sdkforge.core.version_resolver import (
    WINDOWS_APP_SDK_PACKAGE,
    WINDOWS_APP_SDK_RUNTIME_PACKAGE,
)
from sdkforge.core.versions import is_newer_or_equal
from sdkforge.models.runtime import (
    InventoryEntry,
    RuntimeAction,
    RuntimeEntryResult,
    RuntimeInstallReport,
)

logger = logging.getLogger(__name__)

INVENTORY_FILE_NAME = "msix.inventory"
DEFAULT_ARCHITECTURE = "x64"

_ARCHITECTURE_ALIASES: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
    "x86": "x86",
    "i386": "x86",
    "i686": "x86",
}


# ---------------------------------------------------------------------------
# Architecture and inventory discovery
# ---------------------------------------------------------------------------


def detect_architecture(machine: str | None = None) -> str:
    """Map the host processor architecture to ``x64``, ``arm64`` or ``x86``.

    Unknown architectures fall back to ``x64``.
    """
    raw = (machine if machine is not None else platform.machine()).lower()
    return _ARCHITECTURE_ALIASES.get(raw, DEFAULT_ARCHITECTURE)


def architecture_directory(msix_dir: Path, architecture: str) -> Path:
    return msix_dir / f"win10-{architecture}"


def parse_inventory_lines(lines: Sequence[str]) -> list[InventoryEntry]:
    """Parse ``fileName=packageIdentity`` lines.

    Blank lines and lines without ``=`` are ignored.
    """
    entries: list[InventoryEntry] = []
    for line in lines:
        if not line.strip() or "=" not in line:
            continue
        file_name, identity = line.split("=", 1)
        if not file_name.strip() or not identity.strip():
            continue
        entries.append(
            InventoryEntry(file_name=file_name.strip(), package_identity=identity.strip())
        )
    return entries


def parse_inventory(msix_dir: Path, architecture: str) -> list[InventoryEntry] | None:
    """Read the inventory for *architecture*; None if absent or empty."""
    arch_dir = architecture_directory(msix_dir, architecture)
    if not arch_dir.is_dir():
        available: list[str] = []
        if msix_dir.is_dir():
            available = sorted(p.name for p in msix_dir.iterdir() if p.is_dir())
        logger.info(
            "No runtime packages found for architecture %s (available: %s)",
            architecture,
            ", ".join(available) or "none",
        )
        return None

    inventory_path = arch_dir / INVENTORY_FILE_NAME
    if not inventory_path.is_file():
        logger.info("No %s file found in %s", INVENTORY_FILE_NAME, arch_dir)
        return None

    try:
        lines = inventory_path.read_text(encoding="utf-8-sig").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", inventory_path, exc)
        return None

    entries = parse_inventory_lines(lines)
    if not entries:
        logger.info("No valid package entries found in %s", inventory_path)
        return None

    logger.debug("Found %d runtime packages in inventory", len(entries))
    return entries


def _msix_dir_for(package_dir: Path) -> Path | None:
    candidate = package_dir / "tools" / "MSIX"
    return candidate if candidate.is_dir() else None


def find_runtime_package_directory(
    packages_dir: Path, used_versions: Mapping[str, str] | None = None
) -> Path | None:
    """Locate the ``tools/MSIX`` directory holding runtime packages.

    Prefers the exact versions installed this run, runtime package first;
    otherwise scans the cache, newest directory name first.
    """
    if not packages_dir.is_dir():
        return None

    if used_versions:
        for package in (WINDOWS_APP_SDK_RUNTIME_PACKAGE, WINDOWS_APP_SDK_PACKAGE):
            version = used_versions.get(package)
            if version:
                found = _msix_dir_for(packages_dir / f"{package}.{version}")
                if found is not None:
                    return found

    runtime_dirs = sorted(
        packages_dir.glob(f"{WINDOWS_APP_SDK_RUNTIME_PACKAGE}.*"), reverse=True
    )
    for package_dir in runtime_dirs:
        found = _msix_dir_for(package_dir)
        if found is not None:
            return found

    main_dirs = sorted(
        (
            p
            for p in packages_dir.glob(f"{WINDOWS_APP_SDK_PACKAGE}.*")
            if "runtime" not in p.name.lower()
        ),
        reverse=True,
    )
    for package_dir in main_dirs:
        found = _msix_dir_for(package_dir)
        if found is not None:
            return found

    return None


# ---------------------------------------------------------------------------
# Installer
# ---------------------------------------------------------------------------


class RuntimeConvergenceInstaller:
    """Converges host-installed runtime packages towards an inventory.

    Parameters
    ----------
    host:
        Query for installed package identities and versions.
    installer:
        Installs a single package file.
    """

    def __init__(
        self, host: HostPackageQuery, installer: RuntimePackageInstaller
    ) -> None:
        self._host = host
        self._installer = installer

    def decide(self, entry: InventoryEntry) -> tuple[RuntimeAction, str]:
        """Plan the action for *entry* without touching the host.

        Returns one of SKIPPED_EXACT, SKIPPED_NEWER_OR_EQUAL, INSTALLED or
        UPGRADED (the latter two meaning "install needed"), plus a detail.
        """
        if self._host.find_exact(entry.package_identity):
            return RuntimeAction.SKIPPED_EXACT, "already installed (exact match)"

        installed = self._host.installed_version(entry.package_name)
        if not installed:
            return RuntimeAction.INSTALLED, "not installed"

        newer_or_equal = is_newer_or_equal(installed, entry.version_string)
        if newer_or_equal is None:
            logger.debug(
                "Cannot compare %s versions %r and %r; installing",
                entry.package_name,
                installed,
                entry.version_string,
            )
            return RuntimeAction.INSTALLED, "version not comparable"
        if newer_or_equal:
            return (
                RuntimeAction.SKIPPED_NEWER_OR_EQUAL,
                f"v{installed} already installed (newer or equal to v{entry.version_string})",
            )
        return RuntimeAction.UPGRADED, f"upgrade from v{installed} to v{entry.version_string}"

    def install_all(
        self,
        inventory: Sequence[InventoryEntry],
        architecture: str,
        package_directory: Path,
        *,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> RuntimeInstallReport:
        """Process every entry in order; per-entry failures never abort the batch.

        *package_directory* is the architecture-scoped directory holding the
        package files named by the inventory.
        """
        results: list[RuntimeEntryResult] = []
        for entry in inventory:
            cancel.raise_if_cancelled()
            results.append(self._process(entry, package_directory))
        return RuntimeInstallReport(architecture=architecture, results=results)

    def install_from_packages(
        self,
        packages_dir: Path,
        used_versions: Mapping[str, str] | None = None,
        *,
        architecture: str | None = None,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> RuntimeInstallReport:
        """Locate the inventory under *packages_dir* and install from it.

        Returns an empty report when no runtime inventory can be found.
        """
        arch = architecture or detect_architecture()
        logger.debug("Detected system architecture: %s", arch)

        msix_dir = find_runtime_package_directory(packages_dir, used_versions)
        if msix_dir is None:
            logger.info("Runtime package directory not found; skipping runtime installation")
            return RuntimeInstallReport(architecture=arch)

        inventory = parse_inventory(msix_dir, arch)
        if not inventory:
            return RuntimeInstallReport(architecture=arch)

        return self.install_all(
            inventory, arch, architecture_directory(msix_dir, arch), cancel=cancel
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _process(self, entry: InventoryEntry, package_directory: Path) -> RuntimeEntryResult:
        try:
            planned, detail = self.decide(entry)
            if planned in (RuntimeAction.SKIPPED_EXACT, RuntimeAction.SKIPPED_NEWER_OR_EQUAL):
                logger.debug("%s: %s, skipping", entry.file_name, detail)
                return RuntimeEntryResult(entry=entry, action=planned, detail=detail)

            package_path = package_directory / entry.file_name
            if not package_path.is_file():
                logger.warning("Runtime package file not found: %s", package_path)
                return RuntimeEntryResult(
                    entry=entry,
                    action=RuntimeAction.MISSING_FILE,
                    detail=str(package_path),
                )

            logger.info(
                "%s %s (%s)...",
                "Upgrading" if planned == RuntimeAction.UPGRADED else "Installing",
                entry.file_name,
                detail,
            )
            exit_code = self._installer.install(package_path)
            if exit_code != 0:
                logger.warning(
                    "%s installation returned exit code %d", entry.file_name, exit_code
                )
                return RuntimeEntryResult(
                    entry=entry,
                    action=RuntimeAction.FAILED,
                    detail=f"exit code {exit_code}",
                )

            return RuntimeEntryResult(entry=entry, action=planned, detail=detail)
        except OperationCancelledError:
            raise
        except Exception as exc:
            logger.warning("Failed to install %s: %s", entry.file_name, exc)
            return RuntimeEntryResult(entry=entry, action=RuntimeAction.FAILED, detail=str(exc))
