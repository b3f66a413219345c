"""Package version convergence and package install.

Convergence decides the target version of every desired package:

* restore: the desired set is the persisted config; pins are used verbatim.
* setup: the desired set is the default SDK package set; pins are used
  unless the user chose to discard them, the rest come from the registry.

Install hands the targets to the package installer and records the
versions it reports as actually installed.
"""

from __future__ import annotations

import logging

from sdkforge.core.version_resolver import SDK_PACKAGES, VersionConvergenceResolver
from sdkforge.models.stages import StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext

logger = logging.getLogger(__name__)


class PackageVersionConvergenceStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "package_version_convergence"

    @property
    def display_name(self) -> str:
        return "Package Version Convergence"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        options = ctx.options
        pinned = ctx.config.version_map()

        if options.require_existing_config:
            desired = ctx.config.package_names()
            prefer_pinned = True
        else:
            desired = list(SDK_PACKAGES)
            prefer_pinned = not ctx.ignore_config

        ctx.desired_packages = desired
        ctx.say(
            "Checking package versions..."
            if prefer_pinned and pinned
            else "Resolving latest package versions..."
        )

        resolver = VersionConvergenceResolver(ctx.services.version_lookup)
        ctx.target_versions = resolver.resolve(
            desired,
            pinned,
            allow_prerelease=options.include_experimental,
            prefer_pinned=prefer_pinned,
            cancel=ctx.cancel,
        )

        for name, version in sorted(ctx.target_versions.items(), key=lambda kv: kv[0].lower()):
            ctx.detail(f"  {name} {version}")

        missing = len(desired) - len(ctx.target_versions)
        if missing:
            logger.warning("%d packages could not be resolved and will be skipped", missing)

        return StageOutcome.ok(
            self.stage_id, f"{len(ctx.target_versions)} of {len(desired)} packages resolved"
        )


class PackageInstallStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "package_install"

    @property
    def display_name(self) -> str:
        return "Package Install"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = ctx.require_layout()

        if not ctx.target_versions:
            logger.warning("No package versions resolved; nothing to install")
            return StageOutcome.skipped(self.stage_id, "no package versions resolved")

        ctx.say(f"Installing {len(ctx.target_versions)} packages → {layout.packages_dir}")
        used = ctx.services.package_installer.install_packages(
            layout.packages_dir,
            list(ctx.target_versions),
            include_prerelease=ctx.options.include_experimental,
            ignore_pinned=False,
            pinned=dict(ctx.target_versions),
            cancel=ctx.cancel,
        )
        ctx.used_versions = dict(used)

        for name, version in sorted(ctx.used_versions.items(), key=lambda kv: kv[0].lower()):
            ctx.detail(f"  installed {name} {version}")

        return StageOutcome.ok(self.stage_id, f"{len(ctx.used_versions)} packages installed")
