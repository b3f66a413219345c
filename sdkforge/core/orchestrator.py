"""Workspace orchestrator: the central coordinator for setup and restore runs.

The orchestrator walks the registered stages in ``DEFAULT_STAGE_DEFINITIONS``
order against a single ``PipelineContext``.  It owns the branching: restore
skips setup-only stages, fatal outcomes abort with the stage's exit code,
``terminate`` outcomes stop early with success, and a cancellation anywhere
produces a distinct ``CANCELLED`` result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from rich.console import Console

from sdkforge.config import ForgeSettings
from sdkforge.core.cancellation import CancellationToken, OperationCancelledError
from sdkforge.models.options import PipelineMode, PipelineOptions
from sdkforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    ExitCode,
    PipelineOutcome,
    PipelineResult,
    StageOutcome,
)
from sdkforge.stages import BaseStage, Collaborators, PipelineContext, get_stage

logger = logging.getLogger(__name__)


class WorkspaceOrchestrator:
    """Runs the provisioning pipeline for one workspace.

    Parameters
    ----------
    services:
        External collaborators used by the stages.
    settings:
        Process settings.  A fresh ``ForgeSettings()`` if not provided.
    console / err_console:
        Where progress and errors are printed.
    stages:
        Override the stage sequence.  Defaults to the registered stages in
        definition order.
    """

    def __init__(
        self,
        services: Collaborators,
        *,
        settings: ForgeSettings | None = None,
        console: Console | None = None,
        err_console: Console | None = None,
        stages: Sequence[BaseStage] | None = None,
    ) -> None:
        self.services = services
        self.settings = settings or ForgeSettings()
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.stages: list[BaseStage] = (
            list(stages)
            if stages is not None
            else [
                get_stage(d.stage_id)
                for d in sorted(DEFAULT_STAGE_DEFINITIONS, key=lambda d: d.ordinal)
            ]
        )

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run(
        self,
        options: PipelineOptions,
        cancel: CancellationToken | None = None,
    ) -> PipelineResult:
        """Execute every stage for *options* and return the final result.

        Never raises for stage failures or cancellation; both are reported
        through the returned ``PipelineResult``.
        """
        ctx = PipelineContext(
            options,
            self.services,
            self.settings,
            console=self.console,
            err_console=self.err_console,
            cancel=cancel or CancellationToken(),
        )
        outcomes: list[StageOutcome] = []
        logger.info("%s starting in %s", options.operation_name, options.base_directory)

        try:
            for stage in self.stages:
                if stage.setup_only and options.mode == PipelineMode.RESTORE:
                    outcomes.append(StageOutcome.skipped(stage.stage_id, "setup only"))
                    continue

                outcome = stage.run_stage(ctx)
                outcomes.append(outcome)

                if outcome.is_fatal:
                    ctx.error(f"{options.operation_name} failed: {outcome.reason}")
                    return self._result(
                        ctx,
                        outcomes,
                        PipelineOutcome.FAILED,
                        outcome.exit_code,
                        outcome.reason,
                    )
                if outcome.terminate:
                    return self._result(
                        ctx,
                        outcomes,
                        PipelineOutcome.COMPLETED,
                        ExitCode.SUCCESS,
                        outcome.reason,
                    )
        except OperationCancelledError:
            logger.warning("%s cancelled", options.operation_name)
            ctx.error("Operation cancelled")
            return self._result(
                ctx,
                outcomes,
                PipelineOutcome.CANCELLED,
                ExitCode.FAILURE,
                "Operation cancelled",
            )

        message = (
            "Restore completed successfully!"
            if options.mode == PipelineMode.RESTORE
            else "sdkforge setup completed."
        )
        ctx.announce(message)
        return self._result(
            ctx, outcomes, PipelineOutcome.COMPLETED, ExitCode.SUCCESS, message
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _result(
        ctx: PipelineContext,
        outcomes: list[StageOutcome],
        outcome: PipelineOutcome,
        exit_code: ExitCode,
        message: str,
    ) -> PipelineResult:
        logger.info(
            "%s finished: %s (exit %d)",
            ctx.options.operation_name,
            outcome.value,
            int(exit_code),
        )
        return PipelineResult(
            mode=ctx.options.mode,
            outcome=outcome,
            exit_code=exit_code,
            stages=outcomes,
            used_versions=dict(ctx.used_versions),
            config_path=ctx.store.path if ctx.store.exists() else None,
            certificate=ctx.certificate,
            message=message,
        )
