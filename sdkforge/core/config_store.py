"""YAML persistence for ``WorkspaceConfig`` (``sdkforge.yaml``).

File format::

    packages:
      - name: Microsoft.Windows.CppWinRT
        version: 2.0.250303.1

Saves are atomic: the document is written to a temp file in the same
directory and moved into place with ``os.replace``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from sdkforge.models.workspace import WorkspaceConfig

logger = logging.getLogger(__name__)


class ConfigNotFoundError(RuntimeError):
    """Raised when a workspace config is required but absent."""


class ConfigFormatError(RuntimeError):
    """Raised when ``sdkforge.yaml`` cannot be parsed."""


class WorkspaceConfigStore:
    """Loads and saves the workspace config under *config_dir*."""

    def __init__(self, config_dir: Path, file_name: str = "sdkforge.yaml") -> None:
        self._path = Path(config_dir) / file_name

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> WorkspaceConfig:
        if not self.exists():
            raise ConfigNotFoundError(f"{self._path.name} not found in {self._path.parent}")
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigFormatError(f"Invalid YAML in {self._path}: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigFormatError(f"Config file must contain a YAML mapping: {self._path}")
        if payload.get("packages") is None:
            payload = {**payload, "packages": []}

        try:
            config = WorkspaceConfig.model_validate(dict(payload))
        except ValidationError as exc:
            raise ConfigFormatError(f"Invalid workspace config {self._path}: {exc}") from exc

        logger.debug("Loaded %d package pins from %s", len(config.packages), self._path)
        return config

    def save(self, config: WorkspaceConfig) -> Path:
        """Atomically write *config* and return the config path."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        document = yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(document)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Wrote %d package pins to %s", len(config.packages), self._path)
        return self._path
