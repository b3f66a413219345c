"""Windows host adapters implemented as PowerShell commands.

Covers the runtime package query and install, developer mode, and the
development certificate generator and trust-store installer.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sdkforge.adapters.process import ProcessError, ProcessResult, run_process
from sdkforge.core.cancellation import NEVER_CANCELLED, CancellationToken

logger = logging.getLogger(__name__)

_DEV_MODE_KEY = (
    r"HKLM:\SOFTWARE\Microsoft\Windows\CurrentVersion\AppModelUnlock"
)


def quote(value: str | Path) -> str:
    """Single-quote *value* for PowerShell."""
    return "'" + str(value).replace("'", "''") + "'"


def secure_string(password: str) -> str:
    return f"(ConvertTo-SecureString -String {quote(password)} -Force -AsPlainText)"


class PowerShellRunner:
    """Runs a PowerShell command line and captures its output."""

    def __init__(
        self,
        executable: str = "powershell",
        *,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> None:
        self._executable = executable
        self._cancel = cancel

    def run(self, command: str, *, check: bool = False) -> ProcessResult:
        return run_process(
            [self._executable, "-NoProfile", "-NonInteractive", "-Command", command],
            cancel=self._cancel,
            check=check,
        )

    def run_elevated(self, command: str) -> ProcessResult:
        """Run *command* in an elevated child shell (may show a UAC prompt)."""
        wrapper = (
            f"Start-Process -FilePath {quote(self._executable)} -Verb RunAs -Wait "
            f"-ArgumentList @('-NoProfile', '-Command', {quote(command)})"
        )
        return self.run(wrapper, check=True)


# ---------------------------------------------------------------------------
# Runtime packages
# ---------------------------------------------------------------------------


class AppxHostPackageQuery:
    """``HostPackageQuery`` over ``Get-AppxPackage``."""

    def __init__(self, runner: PowerShellRunner) -> None:
        self._runner = runner

    def find_exact(self, package_identity: str) -> bool:
        result = self._runner.run(
            "Get-AppxPackage | Where-Object { $_.PackageFullName -eq "
            f"{quote(package_identity)} }}"
        )
        return result.ok and bool(result.stdout.strip())

    def installed_version(self, package_name: str) -> str | None:
        result = self._runner.run(
            f"Get-AppxPackage | Where-Object {{ $_.Name -eq {quote(package_name)} }} "
            "| Select-Object -ExpandProperty Version"
        )
        if not result.ok:
            return None
        for line in result.stdout.splitlines():
            line = line.strip()
            if line and line != "Version" and not line.startswith("-"):
                return line
        return None


class AppxRuntimeInstaller:
    """``RuntimePackageInstaller`` over ``Add-AppxPackage``."""

    def __init__(self, runner: PowerShellRunner) -> None:
        self._runner = runner

    def install(self, package_path: Path) -> int:
        result = self._runner.run(
            f"Add-AppxPackage -Path {quote(package_path)} -ForceApplicationShutdown"
        )
        if not result.ok:
            logger.debug("Add-AppxPackage output: %s", result.stderr.strip())
        return result.returncode


class RegistryDevModeService:
    """``DevModeService`` that sets ``AllowDevelopmentWithoutDevLicense``."""

    def __init__(self, runner: PowerShellRunner) -> None:
        self._runner = runner

    def is_enabled(self) -> bool:
        result = self._runner.run(
            f"(Get-ItemProperty -Path {quote(_DEV_MODE_KEY)} "
            "-Name AllowDevelopmentWithoutDevLicense -ErrorAction SilentlyContinue)"
            ".AllowDevelopmentWithoutDevLicense"
        )
        return result.ok and result.stdout.strip() == "1"

    def ensure_enabled(self) -> int:
        if self.is_enabled():
            logger.debug("Developer mode already enabled")
            return 0
        command = (
            f"New-Item -Path {quote(_DEV_MODE_KEY)} -Force | Out-Null; "
            f"Set-ItemProperty -Path {quote(_DEV_MODE_KEY)} "
            "-Name AllowDevelopmentWithoutDevLicense -Value 1 -Type DWord"
        )
        try:
            self._runner.run_elevated(command)
        except ProcessError as exc:
            logger.warning("Could not enable developer mode: %s", exc)
            return 1
        return 0 if self.is_enabled() else 1


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


class PowerShellCertificateGenerator:
    """``CertificateGenerator`` using ``New-SelfSignedCertificate``."""

    def __init__(self, runner: PowerShellRunner) -> None:
        self._runner = runner

    def generate(
        self, subject_name: str, output_path: Path, password: str, valid_days: int
    ) -> None:
        command = (
            f"New-SelfSignedCertificate -Type Custom -Subject {quote(subject_name)} "
            "-KeyUsage DigitalSignature -FriendlyName 'MSIX Dev Certificate' "
            "-CertStoreLocation 'Cert:\\CurrentUser\\My' "
            "-TextExtension @('2.5.29.37={text}1.3.6.1.5.5.7.3.3', '2.5.29.19={text}') "
            f"-NotAfter (Get-Date).AddDays({int(valid_days)}) "
            f"| Export-PfxCertificate -FilePath {quote(output_path)} "
            f"-Password {secure_string(password)}"
        )
        self._runner.run(command, check=True)


class PowerShellTrustStoreInstaller:
    """``TrustStoreInstaller`` targeting ``LocalMachine\\TrustedPeople``."""

    def __init__(self, runner: PowerShellRunner) -> None:
        self._runner = runner

    def is_installed(self, cert_path: Path) -> bool:
        result = self._runner.run(
            "Get-ChildItem -Path 'Cert:\\LocalMachine\\TrustedPeople' "
            f"| Where-Object {{ $_.Subject -like {quote('*' + cert_path.stem + '*')} }}"
        )
        return result.ok and bool(result.stdout.strip())

    def install(self, cert_path: Path, password: str, force: bool) -> bool:
        if not force and self.is_installed(cert_path):
            return False
        self._runner.run_elevated(
            f"Import-PfxCertificate -FilePath {quote(cert_path.resolve())} "
            "-CertStoreLocation 'Cert:\\LocalMachine\\TrustedPeople' "
            f"-Password {secure_string(password)}"
        )
        return True
