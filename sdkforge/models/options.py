"""Run options for a single provisioning pipeline invocation."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class PipelineMode(str, Enum):
    """``setup`` creates a fresh workspace; ``restore`` rebuilds from config."""

    SETUP = "setup"
    RESTORE = "restore"


class PipelineOptions(BaseModel):
    """Immutable parameters for one orchestrator run.

    ``base_directory`` doubles as the working directory for every stage;
    nothing in the pipeline reads the process's current directory.
    """

    model_config = ConfigDict(frozen=True)

    mode: PipelineMode = PipelineMode.SETUP
    base_directory: Path
    config_directory: Path
    quiet: bool = False
    verbose: bool = False
    include_experimental: bool = False
    ignore_config: bool = False
    no_gitignore: bool = False
    assume_yes: bool = False
    force_latest_build_tools: bool = False
    no_cert: bool = False
    config_only: bool = False

    @property
    def require_existing_config(self) -> bool:
        """Restore runs must find a persisted config; setup runs create one."""
        return self.mode == PipelineMode.RESTORE

    @property
    def operation_name(self) -> str:
        return "Restore" if self.mode == PipelineMode.RESTORE else "Setup"
