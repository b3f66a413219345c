"""``sdkforge cert``: generate and install development certificates."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from sdkforge.adapters import packages_directory
from sdkforge.adapters.manifest import AppxManifestReader
from sdkforge.adapters.powershell import (
    PowerShellCertificateGenerator,
    PowerShellRunner,
    PowerShellTrustStoreInstaller,
)
from sdkforge.adapters.process import ProcessError
from sdkforge.adapters.toolchain import SignToolSigner
from sdkforge.cli.output import configure_logging, console, err_console
from sdkforge.config import settings
from sdkforge.core.certificates import (
    CertificateExistsError,
    CertificateGenerationError,
    CertificateProvisioner,
)
from sdkforge.core.publisher import PublisherInferenceChain, PublisherInferenceError
from sdkforge.models.certificates import CertificateState

cert_app = typer.Typer(
    name="cert",
    help="Generate and install development certificates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def build_provisioner(working_directory: Path) -> CertificateProvisioner:
    """Certificate provisioner for CLI commands.  Tests replace this with fakes."""
    runner = PowerShellRunner(settings.powershell_executable)
    reader = AppxManifestReader()
    return CertificateProvisioner(
        PowerShellCertificateGenerator(runner),
        PowerShellTrustStoreInstaller(runner),
        PublisherInferenceChain(reader),
        working_directory,
        project_discovery=lambda: reader.find_project_manifest(working_directory),
        signer=SignToolSigner(packages_directory(settings)),
    )


@cert_app.command(name="generate", help="Generate a development certificate.")
def generate_cmd(
    publisher: str = typer.Option(
        None, "--publisher", help="Publisher name (CN=...).  Inferred if omitted."
    ),
    manifest: Path = typer.Option(
        None, "--manifest", help="Manifest to read the publisher from."
    ),
    output: Path = typer.Option(
        None, "--output", "-o", help="Output .pfx path (defaults to devcert.pfx)."
    ),
    password: str = typer.Option(
        settings.default_certificate_password, "--password", help="Certificate password."
    ),
    valid_days: int = typer.Option(
        settings.default_certificate_valid_days, "--valid-days", help="Validity in days."
    ),
    install: bool = typer.Option(
        False, "--install", help="Install the certificate to the trusted store."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Generate a self-signed code signing certificate for local development."""
    configure_logging(verbose)
    working_directory = Path.cwd()
    provisioner = build_provisioner(working_directory)
    target = output or Path(settings.default_certificate_name)

    try:
        result = provisioner.provision(
            target,
            explicit_publisher=publisher,
            manifest_path=manifest,
            password=password,
            valid_days=valid_days,
            skip_if_exists=True,
            update_gitignore=True,
            install=install,
        )
    except CertificateExistsError as exc:
        err_console.print(f"[bold red]{exc}[/bold red]")
        err_console.print("Delete it first or choose a different --output path.")
        raise typer.Exit(code=1)
    except (PublisherInferenceError, CertificateGenerationError, ProcessError) as exc:
        err_console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    record = result.record
    lines = [
        "[bold green]Development certificate generated[/bold green]",
        "",
        f"[bold]Path:[/bold]      {record.certificate_path}",
        f"[bold]Publisher:[/bold] {record.publisher}",
        f"[bold]Subject:[/bold]   {record.subject_name}",
    ]
    if result.gitignore_updated:
        lines.append(f"[dim]Added {record.certificate_path.name} to .gitignore[/dim]")
    if result.state == CertificateState.INSTALLED:
        lines.append("[bold]Installed to the trusted store.[/bold]")
    elif result.already_trusted:
        lines.append("[dim]Certificate was already trusted.[/dim]")

    console.print(Panel("\n".join(lines), title="[bold]sdkforge[/bold]", border_style="green"))


@cert_app.command(name="install", help="Install a certificate to the trusted store.")
def install_cmd(
    cert_path: Path = typer.Argument(..., help="Path to the .pfx certificate."),
    password: str = typer.Option(
        settings.default_certificate_password, "--password", help="Certificate password."
    ),
    force: bool = typer.Option(
        False, "--force", help="Install even if the certificate appears to be trusted."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Trust a development certificate so signed packages can be sideloaded."""
    configure_logging(verbose)
    provisioner = build_provisioner(Path.cwd())
    try:
        installed = provisioner.install(cert_path, password, force)
    except (FileNotFoundError, ProcessError) as exc:
        err_console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    if installed:
        console.print(f"[green]Certificate installed:[/green] {cert_path}")
    else:
        console.print(f"[dim]Certificate is already installed:[/dim] {cert_path}")
