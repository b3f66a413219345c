"""Layout materialization: headers, import libraries, runtime binaries, license."""

from __future__ import annotations

import logging
import shutil

from sdkforge.core.directories import WorkspaceLayout
from sdkforge.core.version_resolver import WINDOWS_APP_SDK_PACKAGE
from sdkforge.models.stages import StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext

logger = logging.getLogger(__name__)


class LayoutMaterializationStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "layout_materialization"

    @property
    def display_name(self) -> str:
        return "Layout Materialization"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = ctx.require_layout()
        copier = ctx.services.layout_copier

        ctx.say("Copying headers, libraries and runtime binaries...")
        copier.copy_includes(layout.packages_dir, layout.include_dir)
        copier.copy_libs(layout.packages_dir, layout.lib_dir)
        copier.copy_runtimes(layout.packages_dir, layout.bin_dir)

        license_copied = self._copy_license(ctx, layout)
        reason = "layout copied" + ("" if license_copied else " (license skipped)")
        return StageOutcome.ok(self.stage_id, reason)

    @staticmethod
    def _copy_license(ctx: PipelineContext, layout: WorkspaceLayout) -> bool:
        """Copy the Windows App SDK license into ``share/``.  Best-effort."""
        version = ctx.used_versions.get(WINDOWS_APP_SDK_PACKAGE)
        if not version:
            return False

        source = layout.packages_dir / f"{WINDOWS_APP_SDK_PACKAGE}.{version}" / "license.txt"
        target = layout.share_dir / WINDOWS_APP_SDK_PACKAGE / "copyright"
        try:
            if not source.is_file():
                logger.debug("No license file at %s", source)
                return False
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as exc:
            logger.warning("Could not copy license file: %s", exc)
            ctx.detail(f"License copy failed: {exc}")
            return False

        ctx.detail(f"License → {target}")
        return True
