"""Host-side provisioning: build tools, developer mode and runtime packages.

All three stages are best-effort.  Developer mode and runtime install only
run during setup.
"""

from __future__ import annotations

import logging

from sdkforge.core.runtime_installer import RuntimeConvergenceInstaller
from sdkforge.core.version_resolver import BUILD_TOOLS_PACKAGE
from sdkforge.models.runtime import RuntimeAction
from sdkforge.models.stages import StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext

logger = logging.getLogger(__name__)

# Exit codes treated as "developer mode is on".
DEV_MODE_OK_CODES = frozenset({0, 3010})


class AuxiliaryToolProvisioningStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "auxiliary_tool_provisioning"

    @property
    def display_name(self) -> str:
        return "Build Tools Provisioning"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        pinned = ctx.config.get_version(BUILD_TOOLS_PACKAGE)
        if ctx.ignore_config:
            pinned = None
        force_latest = ctx.options.force_latest_build_tools or not pinned

        ctx.say("Ensuring build tools are available...")
        path = ctx.services.build_tools.ensure(
            pinned, force_latest=force_latest, cancel=ctx.cancel
        )
        if path is None:
            return StageOutcome.failed(
                self.stage_id, "build tools could not be provisioned", fatal=False
            )

        ctx.detail(f"Build tools → {path}")
        return StageOutcome.ok(self.stage_id, str(path))


class DevModeCheckStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "dev_mode_check"

    @property
    def display_name(self) -> str:
        return "Developer Mode"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        ctx.say("Checking developer mode...")
        code = ctx.services.dev_mode.ensure_enabled()
        if code == 3010:
            ctx.say("Developer mode enabled; a restart may be required.")
        if code in DEV_MODE_OK_CODES:
            return StageOutcome.ok(self.stage_id)

        ctx.say(f"Could not enable developer mode (exit code {code}).")
        return StageOutcome.failed(self.stage_id, f"exit code {code}", fatal=False)


class RuntimeInstallStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "runtime_install"

    @property
    def display_name(self) -> str:
        return "Runtime Install"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = ctx.require_layout()
        installer = RuntimeConvergenceInstaller(
            ctx.services.host_packages, ctx.services.runtime_installer
        )

        ctx.say("Installing Windows App SDK runtime packages...")
        report = installer.install_from_packages(
            layout.packages_dir, ctx.used_versions, cancel=ctx.cancel
        )
        ctx.runtime_report = report
        if not report.performed:
            return StageOutcome.skipped(self.stage_id, "no runtime inventory found")

        for result in report.results:
            ctx.detail(f"  {result.entry.file_name}: {result.action.value} {result.detail}")

        installed = len(report.with_action(RuntimeAction.INSTALLED)) + len(
            report.with_action(RuntimeAction.UPGRADED)
        )
        skipped = len(report.with_action(RuntimeAction.SKIPPED_EXACT)) + len(
            report.with_action(RuntimeAction.SKIPPED_NEWER_OR_EQUAL)
        )
        failed = len(report.failures) + len(report.with_action(RuntimeAction.MISSING_FILE))
        summary = f"{installed} installed, {skipped} up to date, {failed} failed ({report.architecture})"
        ctx.say(f"Runtime packages: {summary}")
        return StageOutcome.ok(self.stage_id, summary)
