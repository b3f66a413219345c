"""``sdkforge sign FILE CERT``: sign a file with a development certificate."""

from __future__ import annotations

from pathlib import Path

import typer

from sdkforge.adapters.toolchain import ToolchainError
from sdkforge.cli.commands import cert as cert_commands
from sdkforge.cli.output import configure_logging, console, err_console
from sdkforge.config import settings


def sign_cmd(
    file_path: Path = typer.Argument(..., help="File to sign (e.g. an .msix package)."),
    cert_path: Path = typer.Argument(..., help="Path to the .pfx certificate."),
    password: str = typer.Option(
        settings.default_certificate_password, "--password", help="Certificate password."
    ),
    timestamp: str = typer.Option(
        None, "--timestamp", help="Timestamp server URL."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Sign a file with signtool from the installed build tools."""
    configure_logging(verbose)
    provisioner = cert_commands.build_provisioner(Path.cwd())
    try:
        provisioner.sign_file(file_path, cert_path, password, timestamp)
    except (FileNotFoundError, ToolchainError) as exc:
        err_console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Signed:[/green] {file_path}")
