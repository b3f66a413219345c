"""``sdkforge setup`` and ``sdkforge restore``: run the provisioning pipeline.

Both commands build ``PipelineOptions``, hand them to the
``WorkspaceOrchestrator`` and exit with the pipeline's exit code.  Ctrl+C
during a run requests cooperative cancellation instead of killing the
process mid-stage.
"""

from __future__ import annotations

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from sdkforge.adapters import default_collaborators
from sdkforge.cli.output import RichPrompter, configure_logging, console, err_console
from sdkforge.config import ForgeSettings, settings
from sdkforge.core.cancellation import CancellationToken
from sdkforge.core.orchestrator import WorkspaceOrchestrator
from sdkforge.models.options import PipelineMode, PipelineOptions
from sdkforge.stages.context import Collaborators


def build_services(
    forge_settings: ForgeSettings,
    *,
    include_prerelease: bool,
    cancel: CancellationToken,
) -> Collaborators:
    """Collaborators for a CLI run.  Tests replace this with fakes."""
    return default_collaborators(
        forge_settings,
        RichPrompter(console),
        include_prerelease=include_prerelease,
        cancel=cancel,
    )


@contextmanager
def _interrupt_cancels(cancel: CancellationToken) -> Iterator[None]:
    """Turn SIGINT into a cancellation request for the duration of a run."""
    try:
        previous = signal.signal(signal.SIGINT, lambda _sig, _frame: cancel.cancel())
    except ValueError:
        # Not on the main thread; leave the default handler in place.
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_pipeline(options: PipelineOptions) -> None:
    configure_logging(options.verbose)
    cancel = CancellationToken()
    services = build_services(
        settings, include_prerelease=options.include_experimental, cancel=cancel
    )
    orchestrator = WorkspaceOrchestrator(
        services, settings=settings, console=console, err_console=err_console
    )

    with _interrupt_cancels(cancel):
        try:
            result = orchestrator.run(options, cancel)
        except KeyboardInterrupt:
            err_console.print("[bold red]Operation cancelled[/bold red]")
            raise typer.Exit(code=1)

    if result.exit_code != 0:
        raise typer.Exit(code=int(result.exit_code))


def _directory(value: Path | None) -> Path:
    return (value or Path.cwd()).resolve()


def setup_cmd(
    base_dir: Path = typer.Option(
        None, "--base-dir", help="Workspace root (defaults to the current directory)."
    ),
    config_dir: Path = typer.Option(
        None, "--config-dir", help="Directory holding sdkforge.yaml (defaults to --base-dir)."
    ),
    experimental: bool = typer.Option(
        False, "--experimental", help="Include prerelease package versions."
    ),
    ignore_config: bool = typer.Option(
        False, "--ignore-config", help="Ignore pinned versions and use the latest."
    ),
    no_gitignore: bool = typer.Option(
        False, "--no-gitignore", help="Do not update .gitignore."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to all prompts."),
    no_cert: bool = typer.Option(
        False, "--no-cert", help="Skip development certificate generation."
    ),
    config_only: bool = typer.Option(
        False, "--config-only", help="Only create or validate sdkforge.yaml."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Set up a workspace: install SDK packages, generate projections, pin versions."""
    base = _directory(base_dir)
    run_pipeline(
        PipelineOptions(
            mode=PipelineMode.SETUP,
            base_directory=base,
            config_directory=config_dir.resolve() if config_dir else base,
            quiet=quiet,
            verbose=verbose,
            include_experimental=experimental,
            ignore_config=ignore_config,
            no_gitignore=no_gitignore,
            assume_yes=yes,
            no_cert=no_cert,
            config_only=config_only,
        )
    )


def restore_cmd(
    base_dir: Path = typer.Option(
        None, "--base-dir", help="Workspace root (defaults to the current directory)."
    ),
    config_dir: Path = typer.Option(
        None, "--config-dir", help="Directory holding sdkforge.yaml (defaults to --base-dir)."
    ),
    experimental: bool = typer.Option(
        False, "--experimental", help="Include prerelease package versions."
    ),
    force_latest_build_tools: bool = typer.Option(
        False,
        "--force-latest-build-tools",
        help="Use the latest build tools even if a version is pinned.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Restore a workspace from the pinned versions in sdkforge.yaml."""
    base = _directory(base_dir)
    run_pipeline(
        PipelineOptions(
            mode=PipelineMode.RESTORE,
            base_directory=base,
            config_directory=config_dir.resolve() if config_dir else base,
            quiet=quiet,
            verbose=verbose,
            include_experimental=experimental,
            force_latest_build_tools=force_latest_build_tools,
            assume_yes=True,
        )
    )
