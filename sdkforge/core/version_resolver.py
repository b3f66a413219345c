"""Version convergence: pinned config vs. live package index.

Restore runs trust pinned versions verbatim; setup runs (or any run without
a pin for a package) ask the registry for the latest version.  A failed
lookup drops that package from the result instead of failing the run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from sdkforge.collaborators import VersionLookup
from sdkforge.core.cancellation import (
    NEVER_CANCELLED,
    CancellationToken,
    OperationCancelledError,
)

logger = logging.getLogger(__name__)

BUILD_TOOLS_PACKAGE = "Microsoft.Windows.SDK.BuildTools"
WINDOWS_APP_SDK_PACKAGE = "Microsoft.WindowsAppSDK"
WINDOWS_APP_SDK_RUNTIME_PACKAGE = "Microsoft.WindowsAppSDK.Runtime"
CPPWINRT_PACKAGE = "Microsoft.Windows.CppWinRT"

# The package set a fresh setup installs and persists.
SDK_PACKAGES: tuple[str, ...] = (
    CPPWINRT_PACKAGE,
    "Microsoft.Windows.SDK.CPP",
    "Microsoft.Windows.SDK.CPP.x64",
    "Microsoft.Windows.SDK.CPP.arm64",
    "Microsoft.Windows.ImplementationLibrary",
    WINDOWS_APP_SDK_PACKAGE,
    BUILD_TOOLS_PACKAGE,
)


def filter_to_desired(
    versions: Mapping[str, str], desired: Iterable[str]
) -> dict[str, str]:
    """Keep only entries whose name is in *desired* (case-insensitive)."""
    wanted = {name.lower() for name in desired}
    return {name: version for name, version in versions.items() if name.lower() in wanted}


class VersionConvergenceResolver:
    """Produces the final ``name -> version`` map for a run.

    Parameters
    ----------
    lookup:
        Registry collaborator used for every non-pinned package.
    """

    def __init__(self, lookup: VersionLookup) -> None:
        self._lookup = lookup

    def resolve(
        self,
        desired_packages: Iterable[str],
        pinned: Mapping[str, str] | None,
        *,
        allow_prerelease: bool,
        prefer_pinned: bool,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> dict[str, str]:
        """Resolve a version for every desired package.

        With ``prefer_pinned``, a package that has a pin is never looked up.
        Packages whose lookup fails are omitted.  Processing order is sorted
        by name so the result is deterministic for a fixed registry state.
        """
        pins = {name.lower(): version for name, version in (pinned or {}).items()}
        resolved: dict[str, str] = {}

        for name in sorted(set(desired_packages), key=str.lower):
            cancel.raise_if_cancelled()

            if prefer_pinned and name.lower() in pins:
                resolved[name] = pins[name.lower()]
                logger.debug("%s pinned at %s", name, resolved[name])
                continue

            try:
                version = self._lookup.get_latest_version(name, allow_prerelease)
            except OperationCancelledError:
                raise
            except Exception as exc:
                logger.warning("Could not get version for %s: %s", name, exc)
                continue

            if not version:
                logger.warning("Registry returned no version for %s", name)
                continue
            resolved[name] = version
            logger.debug("%s resolved to latest %s", name, version)

        return resolved

    def default_versions(
        self,
        packages: Iterable[str] = SDK_PACKAGES,
        *,
        allow_prerelease: bool,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> dict[str, str]:
        """Latest versions for the default package set (config-only runs)."""
        return self.resolve(
            packages,
            None,
            allow_prerelease=allow_prerelease,
            prefer_pinned=False,
            cancel=cancel,
        )
