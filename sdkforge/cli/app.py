"""Main Typer application: imports and registers all CLI commands.

Entry point: ``sdkforge`` (configured via pyproject.toml console_scripts).

Commands: setup, restore, cert generate, cert install, sign, get-path.
"""

from __future__ import annotations

import typer

from sdkforge.cli.commands.cert import cert_app
from sdkforge.cli.commands.get_path import get_path_cmd
from sdkforge.cli.commands.sign import sign_cmd
from sdkforge.cli.commands.workspace import restore_cmd, setup_cmd

app = typer.Typer(
    name="sdkforge",
    help="sdkforge: Windows SDK workspace provisioning.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="setup", help="Set up a new workspace.")(setup_cmd)
app.command(name="restore", help="Restore a workspace from sdkforge.yaml.")(restore_cmd)
app.command(name="sign", help="Sign a file with a certificate.")(sign_cmd)
app.command(name="get-path", help="Print the workspace directory.")(get_path_cmd)
app.add_typer(cert_app, name="cert")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
