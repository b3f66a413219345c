"""Abstract base stage with an enforced lifecycle.

Every concrete stage inherits from BaseStage and implements only
``execute()``.  The ``run_stage()`` wrapper is **not overridable**: it
enforces the canonical lifecycle ordering:

    check cancellation -> execute -> classify failure -> log

Exceptions escaping ``execute()`` are reclassified into a ``StageOutcome``:
best-effort stages report a non-fatal failure and the pipeline continues,
all other stages report a fatal failure.  Cancellation is never reclassified.
"""

from __future__ import annotations

import abc
import logging
from typing import final

from sdkforge.core.cancellation import OperationCancelledError
from sdkforge.models.stages import (
    STAGE_DEFINITIONS_BY_ID,
    ExitCode,
    StageOutcome,
    StageStatus,
)
from sdkforge.stages.context import PipelineContext

logger = logging.getLogger(__name__)


class BaseStage(abc.ABC):
    """Abstract base for all provisioning pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``: unique identifier matching a ``StageDefinition``.
        * ``display_name``: human-readable name.
        * ``execute(ctx)``: the stage's core logic.

    Subclasses **must not** override ``run_stage()``.
    """

    # ------------------------------------------------------------------
    # Abstract interface: subclasses implement these
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier (e.g. ``'package_install'``)."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        ...

    @abc.abstractmethod
    def execute(self, ctx: PipelineContext) -> StageOutcome:
        """Run the stage and return its tagged outcome.

        Stages may raise; ``run_stage`` turns the exception into a failed
        outcome according to the stage's definition.
        """
        ...

    # ------------------------------------------------------------------
    # Lifecycle: NOT overridable
    # ------------------------------------------------------------------

    @property
    def best_effort(self) -> bool:
        definition = STAGE_DEFINITIONS_BY_ID.get(self.stage_id)
        return definition.best_effort if definition else False

    @property
    def setup_only(self) -> bool:
        definition = STAGE_DEFINITIONS_BY_ID.get(self.stage_id)
        return definition.setup_only if definition else False

    @final
    def run_stage(self, ctx: PipelineContext) -> StageOutcome:
        """Execute the full stage lifecycle.  **Do not override.**"""
        ctx.cancel.raise_if_cancelled()
        logger.debug("%s [%s] starting", self.display_name, self.stage_id)

        try:
            outcome = self.execute(ctx)
        except OperationCancelledError:
            raise
        except Exception as exc:
            if self.best_effort:
                logger.warning(
                    "%s [%s] failed, continuing: %s",
                    self.display_name,
                    self.stage_id,
                    exc,
                )
                outcome = StageOutcome.failed(self.stage_id, str(exc), fatal=False)
            else:
                logger.error(
                    "%s [%s] failed: %s",
                    self.display_name,
                    self.stage_id,
                    exc,
                    exc_info=ctx.options.verbose,
                )
                outcome = StageOutcome.failed(
                    self.stage_id, str(exc), fatal=True, exit_code=ExitCode.FAILURE
                )

        if outcome.status == StageStatus.FAILED and not outcome.fatal:
            ctx.detail(f"{self.display_name}: {outcome.reason}")

        logger.info(
            "%s [%s] %s%s",
            self.display_name,
            self.stage_id,
            outcome.status.value,
            f" ({outcome.reason})" if outcome.reason else "",
        )
        return outcome

    # ------------------------------------------------------------------
    # Repr
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        flags = []
        if self.setup_only:
            flags.append("setup-only")
        if self.best_effort:
            flags.append("best-effort")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return f"<{type(self).__name__} stage_id={self.stage_id!r}{suffix}>"
