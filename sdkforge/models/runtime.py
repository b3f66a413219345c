"""Runtime package inventory models (``msix.inventory`` entries)."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class InventoryEntry(BaseModel):
    """One ``fileName=packageIdentity`` line of an architecture inventory.

    ``package_identity`` has the form ``Name_Version_Architecture_PublisherHash``.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    package_identity: str

    @property
    def package_name(self) -> str:
        return self.package_identity.split("_")[0]

    @property
    def version_string(self) -> str | None:
        parts = self.package_identity.split("_")
        return parts[1] if len(parts) >= 2 else None


class RuntimeAction(str, Enum):
    """Per-entry decision taken by the runtime installer."""

    SKIPPED_EXACT = "skipped_exact"
    SKIPPED_NEWER_OR_EQUAL = "skipped_newer_or_equal"
    INSTALLED = "installed"
    UPGRADED = "upgraded"
    MISSING_FILE = "missing_file"
    FAILED = "failed"


class RuntimeEntryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: InventoryEntry
    action: RuntimeAction
    detail: str = ""


class RuntimeInstallReport(BaseModel):
    """Results for every inventory entry, in inventory order."""

    model_config = ConfigDict(frozen=True)

    architecture: str = ""
    results: list[RuntimeEntryResult] = []

    @property
    def performed(self) -> bool:
        """False when no inventory was found and nothing was attempted."""
        return bool(self.results)

    def with_action(self, action: RuntimeAction) -> list[RuntimeEntryResult]:
        return [r for r in self.results if r.action == action]

    @property
    def failures(self) -> list[RuntimeEntryResult]:
        return self.with_action(RuntimeAction.FAILED)
