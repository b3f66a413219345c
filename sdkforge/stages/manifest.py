"""Manifest generation: create an application manifest when the project has none."""

from __future__ import annotations

from sdkforge.models.stages import StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext

DEFAULT_MANIFEST_VERSION = "1.0.0.0"
DEFAULT_MANIFEST_DESCRIPTION = "Windows Application"


class ManifestGenerationStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "manifest_generation"

    @property
    def display_name(self) -> str:
        return "Manifest Generation"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        existing = ctx.services.manifest_reader.find_project_manifest(ctx.base_directory)
        if existing is not None:
            ctx.detail(f"Found existing manifest: {existing}")
            return StageOutcome.skipped(self.stage_id, f"manifest exists: {existing}")

        ctx.say("Generating application manifest...")
        path = ctx.services.manifest_generator.generate_manifest(
            ctx.base_directory,
            package_name=None,
            publisher=None,
            version=DEFAULT_MANIFEST_VERSION,
            description=DEFAULT_MANIFEST_DESCRIPTION,
            executable=None,
            sparse=False,
            logo_path=None,
            assume_yes=ctx.options.assume_yes,
        )
        ctx.say(f"Manifest generated → {path}")
        return StageOutcome.ok(self.stage_id, str(path))
