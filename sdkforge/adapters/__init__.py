"""Default collaborator implementations for a Windows host.

``default_collaborators`` wires the NuGet, PowerShell, toolchain, layout and
manifest adapters into a ``Collaborators`` bundle for the orchestrator.
"""

from __future__ import annotations

from pathlib import Path

from sdkforge.adapters.layout import PackageLayoutCopier
from sdkforge.adapters.manifest import AppxManifestReader, TemplateManifestGenerator
from sdkforge.adapters.nuget import (
    NuGetBuildToolsProvisioner,
    NuGetCliInstaller,
    NuGetVersionLookup,
)
from sdkforge.adapters.powershell import (
    AppxHostPackageQuery,
    AppxRuntimeInstaller,
    PowerShellCertificateGenerator,
    PowerShellRunner,
    PowerShellTrustStoreInstaller,
    RegistryDevModeService,
)
from sdkforge.adapters.toolchain import CppWinrtToolchain, SignToolSigner
from sdkforge.collaborators import Prompter
from sdkforge.config import ForgeSettings
from sdkforge.core.cancellation import NEVER_CANCELLED, CancellationToken
from sdkforge.stages.context import Collaborators


def packages_directory(settings: ForgeSettings) -> Path:
    return Path(settings.global_directory).expanduser().resolve() / "packages"


def default_collaborators(
    settings: ForgeSettings,
    prompter: Prompter,
    *,
    include_prerelease: bool = False,
    cancel: CancellationToken = NEVER_CANCELLED,
) -> Collaborators:
    lookup = NuGetVersionLookup(
        settings.nuget_index_url, timeout=settings.request_timeout_seconds
    )
    installer = NuGetCliInstaller(settings.nuget_executable, lookup)
    powershell = PowerShellRunner(settings.powershell_executable, cancel=cancel)

    return Collaborators(
        version_lookup=lookup,
        package_installer=installer,
        toolchain=CppWinrtToolchain(),
        layout_copier=PackageLayoutCopier(),
        build_tools=NuGetBuildToolsProvisioner(
            installer,
            lookup,
            packages_directory(settings),
            include_prerelease=include_prerelease,
        ),
        dev_mode=RegistryDevModeService(powershell),
        host_packages=AppxHostPackageQuery(powershell),
        runtime_installer=AppxRuntimeInstaller(powershell),
        manifest_generator=TemplateManifestGenerator(confirm=prompter.confirm),
        manifest_reader=AppxManifestReader(),
        certificate_generator=PowerShellCertificateGenerator(powershell),
        trust_store=PowerShellTrustStoreInstaller(powershell),
        prompter=prompter,
    )


def default_signer(
    settings: ForgeSettings, *, cancel: CancellationToken = NEVER_CANCELLED
) -> SignToolSigner:
    return SignToolSigner(packages_directory(settings), cancel=cancel)


__all__ = [
    "default_collaborators",
    "default_signer",
    "packages_directory",
    "AppxHostPackageQuery",
    "AppxManifestReader",
    "AppxRuntimeInstaller",
    "CppWinrtToolchain",
    "NuGetBuildToolsProvisioner",
    "NuGetCliInstaller",
    "NuGetVersionLookup",
    "PackageLayoutCopier",
    "PowerShellCertificateGenerator",
    "PowerShellRunner",
    "PowerShellTrustStoreInstaller",
    "RegistryDevModeService",
    "SignToolSigner",
    "TemplateManifestGenerator",
]
