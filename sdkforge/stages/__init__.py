"""sdkforge pipeline stages: registry mapping stage_id to stage class.

Usage::

    from sdkforge.stages import STAGE_REGISTRY, get_stage

    stage = get_stage("package_install")
    outcome = stage.run_stage(ctx)
"""

from __future__ import annotations

from sdkforge.stages.base import BaseStage
from sdkforge.stages.certificate import CertificateProvisioningStage
from sdkforge.stages.config import ConfigPersistenceStage, ConfigResolutionStage
from sdkforge.stages.context import Collaborators, PipelineContext, StagePrerequisiteError
from sdkforge.stages.directories import DirectoryInitializationStage
from sdkforge.stages.host import (
    AuxiliaryToolProvisioningStage,
    DevModeCheckStage,
    RuntimeInstallStage,
)
from sdkforge.stages.layout import LayoutMaterializationStage
from sdkforge.stages.manifest import ManifestGenerationStage
from sdkforge.stages.packages import PackageInstallStage, PackageVersionConvergenceStage
from sdkforge.stages.toolchain import ToolchainDiscoveryStage, ToolchainInvocationStage

# ---------------------------------------------------------------------------
# Stage registry: stage_id -> stage class
# ---------------------------------------------------------------------------

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "config_resolution": ConfigResolutionStage,
    "directory_initialization": DirectoryInitializationStage,
    "package_version_convergence": PackageVersionConvergenceStage,
    "package_install": PackageInstallStage,
    "toolchain_discovery": ToolchainDiscoveryStage,
    "layout_materialization": LayoutMaterializationStage,
    "toolchain_invocation": ToolchainInvocationStage,
    "auxiliary_tool_provisioning": AuxiliaryToolProvisioningStage,
    "dev_mode_check": DevModeCheckStage,
    "runtime_install": RuntimeInstallStage,
    "manifest_generation": ManifestGenerationStage,
    "config_persistence": ConfigPersistenceStage,
    "certificate_provisioning": CertificateProvisioningStage,
}

# Ordered list matching the default pipeline execution order.
STAGE_ORDER: list[str] = list(STAGE_REGISTRY)


def get_stage(stage_id: str) -> BaseStage:
    """Instantiate and return a stage by its ``stage_id``.

    Raises ``KeyError`` if the stage_id is not registered.
    """
    try:
        cls = STAGE_REGISTRY[stage_id]
    except KeyError:
        raise KeyError(
            f"Unknown stage_id {stage_id!r}. "
            f"Registered stages: {sorted(STAGE_REGISTRY.keys())}"
        ) from None
    return cls()


__all__ = [
    # Base
    "BaseStage",
    "Collaborators",
    "PipelineContext",
    "StagePrerequisiteError",
    # Registry
    "STAGE_REGISTRY",
    "STAGE_ORDER",
    "get_stage",
    # Concrete stages
    "ConfigResolutionStage",
    "DirectoryInitializationStage",
    "PackageVersionConvergenceStage",
    "PackageInstallStage",
    "ToolchainDiscoveryStage",
    "LayoutMaterializationStage",
    "ToolchainInvocationStage",
    "AuxiliaryToolProvisioningStage",
    "DevModeCheckStage",
    "RuntimeInstallStage",
    "ManifestGenerationStage",
    "ConfigPersistenceStage",
    "CertificateProvisioningStage",
]
