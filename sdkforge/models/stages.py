"""Stage models: pipeline definitions and tagged stage outcomes."""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from sdkforge.models.certificates import CertificateRecord
from sdkforge.models.options import PipelineMode


class ExitCode(IntEnum):
    """Process exit codes surfaced by ``setup`` and ``restore``."""

    SUCCESS = 0
    FAILURE = 1
    TOOLCHAIN_FATAL = 2


class StageStatus(str, Enum):
    """Result tag for a single stage."""

    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class PipelineOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StageOutcome(BaseModel):
    """Tagged result of one stage: ``Ok``, ``Skipped(reason)`` or
    ``Failed(reason, fatal)``.

    ``terminate`` marks a successful early stop of the whole pipeline
    (config-only runs, restore with nothing configured).
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    status: StageStatus
    reason: str = ""
    fatal: bool = False
    exit_code: ExitCode = ExitCode.SUCCESS
    terminate: bool = False

    @classmethod
    def ok(cls, stage_id: str, reason: str = "", *, terminate: bool = False) -> "StageOutcome":
        return cls(stage_id=stage_id, status=StageStatus.OK, reason=reason, terminate=terminate)

    @classmethod
    def skipped(cls, stage_id: str, reason: str, *, terminate: bool = False) -> "StageOutcome":
        return cls(
            stage_id=stage_id,
            status=StageStatus.SKIPPED,
            reason=reason,
            terminate=terminate,
        )

    @classmethod
    def failed(
        cls,
        stage_id: str,
        reason: str,
        *,
        fatal: bool,
        exit_code: ExitCode = ExitCode.FAILURE,
    ) -> "StageOutcome":
        return cls(
            stage_id=stage_id,
            status=StageStatus.FAILED,
            reason=reason,
            fatal=fatal,
            exit_code=exit_code if fatal else ExitCode.SUCCESS,
        )

    @property
    def is_fatal(self) -> bool:
        return self.status == StageStatus.FAILED and self.fatal


class StageDefinition(BaseModel):
    """Defines a pipeline stage and how its failures are classified.

    Stages run in ``ordinal`` order.  ``setup_only`` stages are skipped in
    restore mode.  A failure in a ``best_effort`` stage is logged and the
    pipeline continues; any other failure aborts the run.
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: float
    setup_only: bool = False
    best_effort: bool = False


class PipelineResult(BaseModel):
    """Final result of an orchestrator run."""

    model_config = ConfigDict(frozen=True)

    mode: PipelineMode
    outcome: PipelineOutcome
    exit_code: ExitCode
    stages: list[StageOutcome] = []
    used_versions: dict[str, str] = Field(default_factory=dict)
    config_path: Path | None = None
    certificate: CertificateRecord | None = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS

    def stage(self, stage_id: str) -> StageOutcome | None:
        """Return the outcome recorded for *stage_id*, if the stage ran."""
        for outcome in self.stages:
            if outcome.stage_id == stage_id:
                return outcome
        return None


# The standard provisioning pipeline, in execution order.
DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="config_resolution",
        display_name="Config Resolution",
        ordinal=0.0,
    ),
    StageDefinition(
        stage_id="directory_initialization",
        display_name="Directory Initialization",
        ordinal=1.0,
    ),
    StageDefinition(
        stage_id="package_version_convergence",
        display_name="Package Version Convergence",
        ordinal=2.0,
    ),
    StageDefinition(
        stage_id="package_install",
        display_name="Package Install",
        ordinal=3.0,
    ),
    StageDefinition(
        stage_id="toolchain_discovery",
        display_name="Toolchain Discovery",
        ordinal=4.0,
    ),
    StageDefinition(
        stage_id="layout_materialization",
        display_name="Layout Materialization",
        ordinal=5.0,
    ),
    StageDefinition(
        stage_id="toolchain_invocation",
        display_name="Toolchain Invocation",
        ordinal=6.0,
    ),
    StageDefinition(
        stage_id="auxiliary_tool_provisioning",
        display_name="Build Tools Provisioning",
        ordinal=7.0,
        best_effort=True,
    ),
    StageDefinition(
        stage_id="dev_mode_check",
        display_name="Developer Mode",
        ordinal=8.0,
        setup_only=True,
        best_effort=True,
    ),
    StageDefinition(
        stage_id="runtime_install",
        display_name="Runtime Install",
        ordinal=8.5,
        setup_only=True,
        best_effort=True,
    ),
    StageDefinition(
        stage_id="manifest_generation",
        display_name="Manifest Generation",
        ordinal=8.75,
        setup_only=True,
        best_effort=True,
    ),
    StageDefinition(
        stage_id="config_persistence",
        display_name="Config Persistence",
        ordinal=9.0,
        setup_only=True,
    ),
    StageDefinition(
        stage_id="certificate_provisioning",
        display_name="Certificate Provisioning",
        ordinal=10.0,
        setup_only=True,
    ),
]

STAGE_DEFINITIONS_BY_ID: dict[str, StageDefinition] = {
    d.stage_id: d for d in DEFAULT_STAGE_DEFINITIONS
}
