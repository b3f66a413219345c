"""Workspace configuration model: the persisted package → version pins."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, model_validator


class PackagePin(BaseModel):
    """A single pinned package version."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str


class WorkspaceConfig(BaseModel):
    """Pinned package versions for a workspace.

    Persisted as ``sdkforge.yaml`` at the workspace root.  Package names are
    unique case-insensitively; lookups ignore case as well.
    """

    model_config = ConfigDict(frozen=True)

    packages: list[PackagePin] = []

    @model_validator(mode="after")
    def _names_unique(self) -> "WorkspaceConfig":
        seen: set[str] = set()
        for pin in self.packages:
            key = pin.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate package in workspace config: {pin.name}")
            seen.add(key)
        return self

    @classmethod
    def from_version_map(cls, versions: Mapping[str, str]) -> "WorkspaceConfig":
        """Build a config from a ``name -> version`` mapping (sorted by name)."""
        return cls(
            packages=[
                PackagePin(name=name, version=versions[name])
                for name in sorted(versions, key=str.lower)
            ]
        )

    @property
    def is_empty(self) -> bool:
        return not self.packages

    def get_version(self, name: str) -> str | None:
        """Return the pinned version for *name*, or None if not pinned."""
        key = name.lower()
        for pin in self.packages:
            if pin.name.lower() == key:
                return pin.version
        return None

    def with_version(self, name: str, version: str) -> "WorkspaceConfig":
        """Return a copy with *name* pinned to *version*."""
        key = name.lower()
        kept = [pin for pin in self.packages if pin.name.lower() != key]
        kept.append(PackagePin(name=name, version=version))
        return WorkspaceConfig(packages=kept)

    def package_names(self) -> list[str]:
        return [pin.name for pin in self.packages]

    def version_map(self) -> dict[str, str]:
        return {pin.name: pin.version for pin in self.packages}
