"""Workspace directory layout.

    <global>/packages/            shared package cache (all workspaces)
    <base>/.sdkforge/include/     headers + generated projections
    <base>/.sdkforge/lib/<arch>/  import libraries
    <base>/.sdkforge/bin/<arch>/  runtime binaries
    <base>/.sdkforge/share/       license files
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sdkforge.config import ForgeSettings


class WorkspaceLayout(BaseModel):
    """Resolved directories for one workspace."""

    model_config = ConfigDict(frozen=True)

    global_dir: Path
    local_dir: Path

    @property
    def packages_dir(self) -> Path:
        return self.global_dir / "packages"

    @property
    def include_dir(self) -> Path:
        return self.local_dir / "include"

    @property
    def lib_dir(self) -> Path:
        return self.local_dir / "lib"

    @property
    def bin_dir(self) -> Path:
        return self.local_dir / "bin"

    @property
    def share_dir(self) -> Path:
        return self.local_dir / "share"

    def create(self) -> list[Path]:
        """Create the global cache and the local layout directories."""
        created: list[Path] = []
        for directory in (
            self.packages_dir,
            self.include_dir,
            self.lib_dir,
            self.bin_dir,
        ):
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                created.append(directory)
        return created


def resolve_layout(base_directory: Path, settings: ForgeSettings) -> WorkspaceLayout:
    return WorkspaceLayout(
        global_dir=Path(settings.global_directory).expanduser().resolve(),
        local_dir=(base_directory / settings.local_directory_name).resolve(),
    )
