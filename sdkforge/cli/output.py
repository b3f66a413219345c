"""Shared consoles, logging setup and interactive prompts for CLI commands."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm

from sdkforge.config import settings

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Route ``logging`` through Rich on stderr.  ``--verbose`` forces DEBUG."""
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(
        RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)
    )
    root.setLevel(level)


class RichPrompter:
    """``Prompter`` backed by ``rich.prompt.Confirm``."""

    def __init__(self, prompt_console: Console | None = None) -> None:
        self._console = prompt_console or console

    def confirm(self, message: str) -> bool:
        return Confirm.ask(message, console=self._console, default=False)
