"""``sdkforge get-path``: print the local or global workspace directory."""

from __future__ import annotations

from pathlib import Path

import typer

from sdkforge.cli.output import console, err_console
from sdkforge.config import settings
from sdkforge.core.directories import resolve_layout


def get_path_cmd(
    global_dir: bool = typer.Option(
        False, "--global", help="Print the shared global directory instead."
    ),
    base_dir: Path = typer.Option(
        None, "--base-dir", help="Workspace root (defaults to the current directory)."
    ),
) -> None:
    """Print a workspace directory for use in build scripts."""
    layout = resolve_layout((base_dir or Path.cwd()).resolve(), settings)
    path = layout.global_dir if global_dir else layout.local_dir

    if not path.is_dir():
        kind = "Global" if global_dir else "Local"
        err_console.print(f"[bold red]{kind} directory not found:[/bold red] {path}")
        err_console.print("Run 'sdkforge setup' first.")
        raise typer.Exit(code=1)

    console.print(str(path), soft_wrap=True, highlight=False)
