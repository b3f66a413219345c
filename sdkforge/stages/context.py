"""Run-wide state threaded through every pipeline stage."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from sdkforge.collaborators import (
    AuxiliaryToolProvisioner,
    CertificateGenerator,
    DevModeService,
    HostPackageQuery,
    LayoutCopier,
    ManifestGenerator,
    ManifestReader,
    PackageInstaller,
    Prompter,
    RuntimePackageInstaller,
    Toolchain,
    TrustStoreInstaller,
    VersionLookup,
)
from sdkforge.config import ForgeSettings
from sdkforge.core.cancellation import CancellationToken
from sdkforge.core.config_store import WorkspaceConfigStore
from sdkforge.core.directories import WorkspaceLayout
from sdkforge.models.certificates import CertificateRecord
from sdkforge.models.options import PipelineOptions
from sdkforge.models.runtime import RuntimeInstallReport
from sdkforge.models.workspace import WorkspaceConfig


class StagePrerequisiteError(RuntimeError):
    """Raised when a stage needs an artifact an earlier stage did not produce."""


class Collaborators:
    """The external services a pipeline run talks to."""

    def __init__(
        self,
        *,
        version_lookup: VersionLookup,
        package_installer: PackageInstaller,
        toolchain: Toolchain,
        layout_copier: LayoutCopier,
        build_tools: AuxiliaryToolProvisioner,
        dev_mode: DevModeService,
        host_packages: HostPackageQuery,
        runtime_installer: RuntimePackageInstaller,
        manifest_generator: ManifestGenerator,
        manifest_reader: ManifestReader,
        certificate_generator: CertificateGenerator,
        trust_store: TrustStoreInstaller,
        prompter: Prompter,
    ) -> None:
        self.version_lookup = version_lookup
        self.package_installer = package_installer
        self.toolchain = toolchain
        self.layout_copier = layout_copier
        self.build_tools = build_tools
        self.dev_mode = dev_mode
        self.host_packages = host_packages
        self.runtime_installer = runtime_installer
        self.manifest_generator = manifest_generator
        self.manifest_reader = manifest_reader
        self.certificate_generator = certificate_generator
        self.trust_store = trust_store
        self.prompter = prompter


class PipelineContext:
    """Mutable state for one run.

    ``options`` is immutable; everything else is filled in by stages as the
    run progresses.  ``base_directory`` stands in for the process working
    directory.
    """

    def __init__(
        self,
        options: PipelineOptions,
        services: Collaborators,
        settings: ForgeSettings,
        *,
        console: Console,
        err_console: Console,
        cancel: CancellationToken,
    ) -> None:
        self.options = options
        self.services = services
        self.settings = settings
        self.console = console
        self.err_console = err_console
        self.cancel = cancel
        self.store = WorkspaceConfigStore(options.config_directory, settings.config_file_name)

        self.config = WorkspaceConfig()
        self.had_existing_config = False
        self.ignore_config = options.ignore_config
        self.layout: WorkspaceLayout | None = None
        self.desired_packages: list[str] = []
        self.target_versions: dict[str, str] = {}
        self.used_versions: dict[str, str] = {}
        self.tool_path: Path | None = None
        self.projection_inputs: list[Path] = []
        self.runtime_report: RuntimeInstallReport | None = None
        self.certificate: CertificateRecord | None = None

    @property
    def base_directory(self) -> Path:
        return self.options.base_directory

    def require_layout(self) -> WorkspaceLayout:
        if self.layout is None:
            raise StagePrerequisiteError("Workspace directories have not been initialized")
        return self.layout

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def say(self, message: str) -> None:
        """Progress output, suppressed by ``--quiet``."""
        if not self.options.quiet:
            self.console.print(message)

    def announce(self, message: str) -> None:
        """Milestone output, printed even in quiet mode."""
        self.console.print(message)

    def detail(self, message: str) -> None:
        """Diagnostic output, shown only with ``--verbose``."""
        if self.options.verbose:
            self.console.print(f"[dim]{message}[/dim]")

    def error(self, message: str) -> None:
        self.err_console.print(f"[bold red]{message}[/bold red]")
