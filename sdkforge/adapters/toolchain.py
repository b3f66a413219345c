"""C++/WinRT projection toolchain and the build tools signer."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from sdkforge.adapters.process import ProcessError, run_process
from sdkforge.core.cancellation import NEVER_CANCELLED, CancellationToken
from sdkforge.core.runtime_installer import detect_architecture
from sdkforge.core.version_resolver import BUILD_TOOLS_PACKAGE, CPPWINRT_PACKAGE

logger = logging.getLogger(__name__)

CPPWINRT_EXECUTABLE = "cppwinrt.exe"
SIGNTOOL_EXECUTABLE = "signtool.exe"
RESPONSE_FILE_NAME = "cppwinrt.rsp"


class ToolchainError(RuntimeError):
    """Raised when the projection tool or a build tool fails."""


def _package_dirs(packages_dir: Path, versions: Mapping[str, str]) -> list[Path]:
    dirs = []
    for name, version in sorted(versions.items(), key=lambda kv: kv[0].lower()):
        package_dir = packages_dir / f"{name}.{version}"
        if package_dir.is_dir():
            dirs.append(package_dir)
    return dirs


class CppWinrtToolchain:
    """``Toolchain`` that runs ``cppwinrt.exe`` with a response file."""

    def find_tool_executable(
        self, search_dir: Path, versions: Mapping[str, str]
    ) -> Path | None:
        version = versions.get(CPPWINRT_PACKAGE)
        if version:
            candidate = search_dir / f"{CPPWINRT_PACKAGE}.{version}" / "bin" / CPPWINRT_EXECUTABLE
            if candidate.is_file():
                return candidate

        for package_dir in sorted(search_dir.glob(f"{CPPWINRT_PACKAGE}.*"), reverse=True):
            candidate = package_dir / "bin" / CPPWINRT_EXECUTABLE
            if candidate.is_file():
                return candidate
        return None

    def find_projection_inputs(
        self, packages_dir: Path, versions: Mapping[str, str]
    ) -> list[Path]:
        """All ``.winmd`` files in the packages used this run, de-duplicated by name."""
        seen: dict[str, Path] = {}
        for package_dir in _package_dirs(packages_dir, versions):
            for winmd in sorted(package_dir.rglob("*.winmd")):
                seen.setdefault(winmd.name.lower(), winmd)
        return list(seen.values())

    def write_response_file(
        self, input_files: Sequence[Path], out_dir: Path, work_dir: Path
    ) -> Path:
        work_dir.mkdir(parents=True, exist_ok=True)
        lines = [f'-input "{path}"' for path in input_files]
        lines.append(f'-output "{out_dir}"')
        rsp = work_dir / RESPONSE_FILE_NAME
        rsp.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return rsp

    def run_projection(
        self,
        tool_path: Path,
        input_files: Sequence[Path],
        out_dir: Path,
        work_dir: Path,
        *,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> None:
        out_dir.mkdir(parents=True, exist_ok=True)
        rsp = self.write_response_file(input_files, out_dir, work_dir)
        try:
            run_process([str(tool_path), f"@{rsp}"], cwd=work_dir, cancel=cancel, check=True)
        except ProcessError as exc:
            raise ToolchainError(f"Projection generation failed: {exc}") from exc


def find_build_tool(
    packages_dir: Path, tool_name: str, architecture: str | None = None
) -> Path | None:
    """Locate *tool_name* in the newest installed build tools package."""
    arch = architecture or detect_architecture()
    for package_dir in sorted(packages_dir.glob(f"{BUILD_TOOLS_PACKAGE}.*"), reverse=True):
        matches = sorted(package_dir.glob(f"bin/*/{arch}/{tool_name}"), reverse=True)
        if matches:
            return matches[0]
    return None


class SignToolSigner:
    """``FileSigner`` running ``signtool.exe`` from the build tools package."""

    def __init__(
        self,
        packages_dir: Path,
        *,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> None:
        self._packages_dir = packages_dir
        self._cancel = cancel

    def sign(
        self,
        file_path: Path,
        certificate_path: Path,
        password: str,
        timestamp_url: str | None,
    ) -> None:
        signtool = find_build_tool(self._packages_dir, SIGNTOOL_EXECUTABLE)
        if signtool is None:
            raise ToolchainError(
                f"{SIGNTOOL_EXECUTABLE} not found; run 'sdkforge setup' to install build tools"
            )

        args = [str(signtool), "sign", "/f", str(certificate_path), "/p", password, "/fd", "SHA256"]
        if timestamp_url and timestamp_url.strip():
            args += ["/tr", timestamp_url, "/td", "SHA256"]
        args.append(str(file_path))

        try:
            run_process(args, cancel=self._cancel, check=True)
        except ProcessError as exc:
            raise ToolchainError(f"Failed to sign file: {exc}") from exc
