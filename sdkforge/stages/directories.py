"""Directory initialization: global package cache and local workspace layout."""

from __future__ import annotations

from sdkforge.core.directories import resolve_layout
from sdkforge.models.stages import StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext


class DirectoryInitializationStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "directory_initialization"

    @property
    def display_name(self) -> str:
        return "Directory Initialization"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = resolve_layout(ctx.base_directory, ctx.settings)
        created = layout.create()
        ctx.layout = layout

        ctx.detail(f"Global packages directory: {layout.packages_dir}")
        ctx.detail(f"Local workspace directory: {layout.local_dir}")
        for directory in created:
            ctx.detail(f"Created {directory}")

        return StageOutcome.ok(self.stage_id, f"{len(created)} directories created")
