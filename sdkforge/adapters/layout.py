"""Package layout copier: stages package contents into the local workspace.

    <pkg>/**/include/**                 ->  <local>/include/
    <pkg>/**/<arch>/*.lib               ->  <local>/lib/<arch>/
    <pkg>/runtimes/win-<arch>/native/*  ->  <local>/bin/<arch>/
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

ARCHITECTURES: tuple[str, ...] = ("x64", "arm64", "x86")


def _package_dirs(src_packages_dir: Path) -> Iterator[Path]:
    if not src_packages_dir.is_dir():
        return
    for child in sorted(src_packages_dir.iterdir()):
        if child.is_dir():
            yield child


class PackageLayoutCopier:
    """``LayoutCopier`` implemented with ``shutil``."""

    def copy_includes(self, src_packages_dir: Path, dest_dir: Path) -> None:
        dest_dir.mkdir(parents=True, exist_ok=True)
        for package_dir in _package_dirs(src_packages_dir):
            for include_dir in sorted(package_dir.rglob("*")):
                if include_dir.is_dir() and include_dir.name.lower() == "include":
                    logger.debug("Copying headers from %s", include_dir)
                    shutil.copytree(include_dir, dest_dir, dirs_exist_ok=True)

    def copy_libs(self, src_packages_dir: Path, dest_dir: Path) -> None:
        for package_dir in _package_dirs(src_packages_dir):
            for lib in sorted(package_dir.rglob("*.lib")):
                arch = lib.parent.name.lower()
                if arch not in ARCHITECTURES:
                    continue
                target = dest_dir / arch
                target.mkdir(parents=True, exist_ok=True)
                shutil.copy2(lib, target / lib.name)

    def copy_runtimes(self, src_packages_dir: Path, dest_dir: Path) -> None:
        for package_dir in _package_dirs(src_packages_dir):
            for arch in ARCHITECTURES:
                native = package_dir / "runtimes" / f"win-{arch}" / "native"
                if not native.is_dir():
                    continue
                logger.debug("Copying %s runtime binaries from %s", arch, native)
                shutil.copytree(native, dest_dir / arch, dirs_exist_ok=True)
