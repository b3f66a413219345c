"""Config resolution (first stage) and config persistence (setup only).

Resolution decides where this run's package set comes from:

    restore + no config         -> fatal, nothing touched on disk
    restore + empty config      -> success, nothing to restore
    setup   + pinned config     -> optionally discard pins (prompt or --yes)
    --config-only               -> validate or create sdkforge.yaml, stop

Persistence writes the versions actually used, restricted to the desired
package set, and keeps the local workspace directory out of git.
"""

from __future__ import annotations

import logging

from sdkforge.core.gitignore import ignore_workspace_directory
from sdkforge.core.version_resolver import (
    SDK_PACKAGES,
    VersionConvergenceResolver,
    filter_to_desired,
)
from sdkforge.models.stages import ExitCode, StageOutcome
from sdkforge.models.workspace import WorkspaceConfig
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext

logger = logging.getLogger(__name__)


class ConfigResolutionStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "config_resolution"

    @property
    def display_name(self) -> str:
        return "Config Resolution"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        options = ctx.options
        store = ctx.store
        file_name = store.path.name

        if options.require_existing_config and not store.exists():
            ctx.error(f"{file_name} not found in {options.config_directory}")
            ctx.error(
                "Run 'sdkforge setup' to initialize a new workspace or navigate "
                f"to a directory with {file_name}"
            )
            return StageOutcome.failed(
                self.stage_id,
                f"{file_name} not found in {options.config_directory}",
                fatal=True,
                exit_code=ExitCode.FAILURE,
            )

        ctx.had_existing_config = store.exists()
        if ctx.had_existing_config:
            ctx.config = store.load()
            count = len(ctx.config.packages)

            if count == 0 and options.require_existing_config:
                ctx.say(f"{file_name} found but contains no packages. Nothing to restore.")
                return StageOutcome.ok(self.stage_id, "no packages configured", terminate=True)

            if options.require_existing_config:
                ctx.say(f"Found {file_name} with {count} packages")
            else:
                ctx.say(f"Found existing {file_name} with {count} packages")
                if count > 0:
                    ctx.say("Using pinned versions unless overridden.")

            if not options.require_existing_config and not ctx.ignore_config and count > 0:
                overwrite = options.assume_yes or ctx.services.prompter.confirm(
                    f"{file_name} exists with pinned versions. Overwrite with latest versions?"
                )
                if overwrite:
                    ctx.ignore_config = True
                    logger.info("Discarding pinned versions in favour of latest")
        else:
            ctx.say(f"No {file_name} found; will generate one after setup.")

        if options.config_only:
            return self._config_only(ctx)

        return StageOutcome.ok(self.stage_id)

    def _config_only(self, ctx: PipelineContext) -> StageOutcome:
        store = ctx.store

        if ctx.had_existing_config:
            ctx.say(f"Existing configuration file found and validated → {store.path}")
            ctx.say(f"Configuration contains {len(ctx.config.packages)} packages")
            self._list_packages(ctx, ctx.config, "Configured packages:")
            ctx.announce("Configuration-only operation completed.")
            return StageOutcome.ok(
                self.stage_id, "existing configuration validated", terminate=True
            )

        ctx.say("Creating configuration file with default SDK packages...")
        resolver = VersionConvergenceResolver(ctx.services.version_lookup)
        defaults = resolver.default_versions(
            SDK_PACKAGES,
            allow_prerelease=ctx.options.include_experimental,
            cancel=ctx.cancel,
        )
        config = WorkspaceConfig.from_version_map(defaults)
        store.save(config)
        ctx.config = config

        ctx.say(f"Configuration file created → {store.path}")
        ctx.say(f"Added {len(config.packages)} default SDK packages")
        self._list_packages(ctx, config, "Generated packages:")
        if ctx.options.include_experimental:
            ctx.say("Prerelease packages were included")
        ctx.announce("Configuration-only operation completed.")
        return StageOutcome.ok(self.stage_id, "configuration created", terminate=True)

    @staticmethod
    def _list_packages(ctx: PipelineContext, config: WorkspaceConfig, heading: str) -> None:
        if not config.packages:
            return
        ctx.detail(heading)
        for pin in config.packages:
            ctx.detail(f"  • {pin.name} = {pin.version}")


class ConfigPersistenceStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "config_persistence"

    @property
    def display_name(self) -> str:
        return "Config Persistence"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        layout = ctx.require_layout()

        to_save = filter_to_desired(ctx.used_versions, ctx.desired_packages)
        path = ctx.store.save(WorkspaceConfig.from_version_map(to_save))
        ctx.announce(f"Wrote config → {path}")

        if not ctx.options.no_gitignore:
            added = ignore_workspace_directory(
                layout.local_dir.parent, ctx.settings.local_directory_name
            )
            if added:
                ctx.say(f"Updated .gitignore → {layout.local_dir.parent / '.gitignore'}")

        return StageOutcome.ok(self.stage_id, f"{len(to_save)} packages pinned")
