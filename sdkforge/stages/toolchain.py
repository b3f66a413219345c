"""Toolchain discovery and invocation.

Both stages are fatal with exit code 2: without the projection tool, or
without any projection input, the workspace cannot be made usable.
"""

from __future__ import annotations

from sdkforge.models.stages import ExitCode, StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext, StagePrerequisiteError

TOOL_EXECUTABLE_NAME = "cppwinrt.exe"


class ToolchainDiscoveryStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "toolchain_discovery"

    @property
    def display_name(self) -> str:
        return "Toolchain Discovery"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = ctx.require_layout()
        tool_path = ctx.services.toolchain.find_tool_executable(
            layout.packages_dir, ctx.used_versions
        )
        if tool_path is None:
            message = f"{TOOL_EXECUTABLE_NAME} not found in installed packages."
            ctx.error(message)
            return StageOutcome.failed(
                self.stage_id, message, fatal=True, exit_code=ExitCode.TOOLCHAIN_FATAL
            )

        ctx.tool_path = tool_path
        ctx.detail(f"Using projection tool: {tool_path}")
        return StageOutcome.ok(self.stage_id, str(tool_path))


class ToolchainInvocationStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "toolchain_invocation"

    @property
    def display_name(self) -> str:
        return "Toolchain Invocation"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = ctx.require_layout()
        if ctx.tool_path is None:
            raise StagePrerequisiteError("Projection tool has not been located")

        inputs = ctx.services.toolchain.find_projection_inputs(
            layout.packages_dir, ctx.used_versions
        )
        if not inputs:
            message = "No metadata files found for projection generation."
            ctx.error(message)
            return StageOutcome.failed(
                self.stage_id, message, fatal=True, exit_code=ExitCode.TOOLCHAIN_FATAL
            )

        ctx.projection_inputs = list(inputs)
        ctx.say(f"Generating projections from {len(inputs)} metadata files...")
        for path in inputs:
            ctx.detail(f"  input {path}")

        ctx.services.toolchain.run_projection(
            ctx.tool_path,
            ctx.projection_inputs,
            layout.include_dir,
            layout.local_dir,
            cancel=ctx.cancel,
        )
        ctx.say(f"Projections generated → {layout.include_dir}")
        return StageOutcome.ok(self.stage_id, f"{len(inputs)} inputs projected")
