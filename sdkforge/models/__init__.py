"""sdkforge data models: all Pydantic v2, all frozen (immutable)."""

from sdkforge.models.certificates import (
    CertificateProvisionResult,
    CertificateRecord,
    CertificateState,
)
from sdkforge.models.options import PipelineMode, PipelineOptions
from sdkforge.models.runtime import (
    InventoryEntry,
    RuntimeAction,
    RuntimeEntryResult,
    RuntimeInstallReport,
)
from sdkforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    ExitCode,
    PipelineOutcome,
    PipelineResult,
    StageDefinition,
    StageOutcome,
    StageStatus,
)
from sdkforge.models.workspace import PackagePin, WorkspaceConfig

__all__ = [
    # workspace
    "PackagePin",
    "WorkspaceConfig",
    # options
    "PipelineMode",
    "PipelineOptions",
    # stages
    "DEFAULT_STAGE_DEFINITIONS",
    "ExitCode",
    "PipelineOutcome",
    "PipelineResult",
    "StageDefinition",
    "StageOutcome",
    "StageStatus",
    # runtime
    "InventoryEntry",
    "RuntimeAction",
    "RuntimeEntryResult",
    "RuntimeInstallReport",
    # certificates
    "CertificateProvisionResult",
    "CertificateRecord",
    "CertificateState",
]
